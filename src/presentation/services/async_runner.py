import asyncio
import concurrent.futures
import logging
from threading import Thread, Event
from typing import Any, Coroutine, Optional

# Setup logger for this module
logger = logging.getLogger(__name__)

class AsyncLoopThread:
    """
    Runs the core's asyncio event loop on a background thread.

    The Qt event loop owns the main thread; every coroutine of the core
    (bootstrap, section loads, retries) is submitted here. ViewModel signals
    emitted from this thread reach widgets as queued connections.
    """

    def __init__(self):
        self._loop = asyncio.new_event_loop()
        self._thread: Optional[Thread] = None
        self._started = Event()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def start(self) -> None:
        if self._thread is not None:
            logger.warning("Attempted to start the core loop while already running.")
            return

        logger.info("Starting core event loop thread...")
        self._thread = Thread(target=self._run, name="crm-core-loop", daemon=True)
        self._thread.start()
        self._started.wait(timeout=2.0)

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """Schedules ``coro`` on the core loop. Thread-safe."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(self._log_failure)
        return future

    def stop(self, timeout: float = 2.0) -> None:
        if self._thread is None:
            return

        logger.info("Stopping core event loop thread...")
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        self._thread = None
        if not self._loop.is_running():
            self._loop.close()
        logger.info("Core event loop stopped.")

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._started.set)
        self._loop.run_forever()

    @staticmethod
    def _log_failure(future: concurrent.futures.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(f"Core task failed: {exc}", exc_info=exc)
