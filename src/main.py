import sys
import logging
import signal

import asyncpg
from PySide6.QtWidgets import QApplication, QLabel
from PySide6.QtCore import QTimer, Qt

from src.config import BASE_DIR
from src.crm_core.application.container import build_core
from src.crm_core.config import CoreConfig
from src.crm_core.domain.models import Session, SectionName
from src.crm_core.infrastructure.logging import setup_logging
from src.crm_core.infrastructure.memory_session import InMemorySessionProvider
from src.crm_core.infrastructure.postgres_db import (
    PostgresPermissionService,
    PostgresProfileService,
    PostgresSectionQueries,
)
from src.presentation.resources.strings import UIStrings
from src.presentation.services.async_runner import AsyncLoopThread
from src.presentation.services.notices import NoticeBridge
from src.presentation.viewmodels.loading_vm import LoadingViewModel
from src.presentation.viewmodels.section_gate_vm import SectionGateViewModel
from src.presentation.views.devtools_overlay import create_devtools
from src.presentation.views.main_window import MainWindow
from src.presentation.views.section_gate import SectionGateWidget

logger = logging.getLogger(__name__)

def setup_environment():
    """Sets up the environment for the application."""
    if str(BASE_DIR) not in sys.path:
        sys.path.insert(0, str(BASE_DIR))

def handle_sigint(signum, frame):
    """Handles KeyboardInterrupt (Ctrl+C)."""
    logger.info("Received SIGINT (Ctrl+C). Exiting...")
    QApplication.quit()

def main():
    """
    Main entry point for the desktop application.
    Bootstraps the QApplication, the core event loop thread and the main
    window with MVVM dependencies.
    """
    setup_environment()
    signal.signal(signal.SIGINT, handle_sigint)

    try:
        # 1. Load Configuration
        try:
            config = CoreConfig()
            settings = config.global_settings
        except Exception as e:
            logging.basicConfig(level=logging.INFO)
            logger.critical(f"Failed to load configuration: {e}")
            sys.exit(1)

        setup_logging(settings.env.value)
        logger.info(f"Configuration loaded successfully. Environment: {settings.env.value}")

        # 2. Initialize Application
        app = QApplication(sys.argv)
        app.setApplicationName("CRM")
        app.setApplicationVersion("1.0.0")

        # 3. Start core loop and database pool
        runner = AsyncLoopThread()
        runner.start()
        try:
            pool = runner.submit(asyncpg.create_pool(settings.db.connection_string)).result(timeout=config.REQUEST_TIMEOUT_SEC)
        except Exception as e:
            logger.critical(f"Database connection failed: {e}")
            runner.stop()
            sys.exit(1)

        # 4. Initialize Dependencies (Services)
        logger.info("Initializing services...")
        notices = NoticeBridge()
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
            notify=notices.post,
        )

        def current_role():
            user = core.bootstrapper.current_user
            return user.role if user else None

        # 5. Initialize ViewModels
        logger.info("Initializing ViewModels...")
        loading_vm = LoadingViewModel(core.machine, core.bootstrapper)
        gates = []
        for section in SectionName:
            title = UIStrings.SECTION_TITLES[section.value]
            gate_vm = SectionGateViewModel(section, title, core.section_loader, core.capability_check, current_role)
            content = QLabel(title)
            content.setAlignment(Qt.AlignmentFlag.AlignCenter)
            gates.append(SectionGateWidget(gate_vm, content, runner.submit))

        # 6. Initialize View (Window)
        logger.info("Initializing View...")
        devtools = create_devtools(settings, core.machine, rows=config.DIAGNOSTICS_ROWS)
        window = MainWindow(loading_vm, gates, runner.submit, devtools)
        notices.notice.connect(window.show_notice)
        window.show()

        # 7. Bootstrap the session on the core loop
        runner.loop.call_soon_threadsafe(core.bootstrapper.attach)
        runner.submit(core.bootstrapper.start())

        # 8. Setup Signal Handling Helper
        timer = QTimer()
        timer.timeout.connect(lambda: None)
        timer.start(500)

        # 9. Execute
        exit_code = app.exec()

        runner.submit(core.bootstrapper.shutdown()).result(timeout=2.0)
        runner.submit(pool.close()).result(timeout=5.0)
        runner.stop()
        sys.exit(exit_code)

    except SystemExit:
        raise
    except Exception as e:
        logger.critical(f"Application failed to start: {e}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    main()
