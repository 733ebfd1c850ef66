import asyncio
import signal
import sys

import asyncpg
import structlog
import uvicorn

from .api.server import create_app
from .application.container import build_core
from .config import CoreConfig
from .domain.models import Session
from .infrastructure.logging import setup_logging
from .infrastructure.memory_session import InMemorySessionProvider
from .infrastructure.postgres_db import (
    PostgresPermissionService,
    PostgresProfileService,
    PostgresSectionQueries,
)

logger = structlog.get_logger()


def _notify(title: str, description: str) -> None:
    logger.warning("user_notice", title=title, description=description)


async def main() -> None:
    # 1. Config
    config = CoreConfig()
    settings = config.global_settings

    # 2. Logging
    setup_logging(settings.env.value)
    logger.info("core_starting", env=settings.env.value)

    # 3. Database Pool
    try:
        pool = await asyncpg.create_pool(settings.db.connection_string)
    except Exception as e:
        logger.critical("db_connection_failed", error=str(e))
        sys.exit(1)

    # 4. DI Container
    dev = settings.dev_session
    sessions = InMemorySessionProvider(
        Session(user_id=dev.user_id, email=dev.email) if dev.user_id else None
    )
    core = build_core(
        sessions=sessions,
        profiles=PostgresProfileService(pool),
        permissions=PostgresPermissionService(pool),
        queries=PostgresSectionQueries(pool, row_limit=config.SECTION_ROW_LIMIT),
        config=config,
        notify=_notify,
    )
    core.bootstrapper.attach()

    # 5. Bootstrap the session
    await core.bootstrapper.start()
    logger.info("core_bootstrapped", status=core.machine.status)

    try:
        if settings.is_development:
            # 6. Diagnostics API (development only). Blocks until shutdown signal
            api_app = create_app(core.machine, core.section_loader, rows=config.DIAGNOSTICS_ROWS)
            http_config = uvicorn.Config(api_app, host=settings.api.host, port=settings.api.port, log_level="info")
            http_server = uvicorn.Server(http_config)
            logger.info("diagnostics_api_starting", port=settings.api.port)
            await http_server.serve()
        else:
            await _wait_for_stop()
    except asyncio.CancelledError:
        pass
    finally:
        logger.info("shutdown_initiated")
        await core.bootstrapper.shutdown()
        core.section_loader.reset()
        await pool.close()
        logger.info("shutdown_complete")


async def _wait_for_stop() -> None:
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def stop() -> None:
        if not stop_event.is_set():
            logger.info("stopping_core")
            stop_event.set()

    if sys.platform != 'win32':
        loop.add_signal_handler(signal.SIGTERM, stop)
        loop.add_signal_handler(signal.SIGINT, stop)
        await stop_event.wait()
    else:
        # Windows: rely on KeyboardInterrupt
        while not stop_event.is_set():
            await asyncio.sleep(0.5)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
