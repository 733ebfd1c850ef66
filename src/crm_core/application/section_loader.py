import asyncio
import time
from typing import Any, Callable, Dict, List, Optional, Union

import structlog

from ..config import CoreConfig
from ..domain.errors import (
    ACCESS_DENIED_DESCRIPTION,
    ACCESS_DENIED_TITLE,
    SECTION_LOAD_FAILED,
    is_access_denied,
)
from ..domain.interfaces import ISectionQueries
from ..domain.models import SectionName, SectionStatus

logger = structlog.get_logger()

SectionListener = Callable[[SectionName], None]
Notifier = Callable[[str, str], None]

# Sections whose failures resolve to an empty list instead of an error
_DEGRADE_TO_EMPTY = frozenset({SectionName.USERS, SectionName.PERSONNEL})


def _consume_result(task: asyncio.Task) -> None:
    # Joiners may all be gone (timeout); keep asyncio from warning about it
    if not task.cancelled():
        task.exception()


class SectionDataLoader:
    """
    Loads and caches the data behind each admin section.

    Every section has its own status and error message. At most one load per
    section is in flight: a call made while one is pending awaits the same
    task. Loads only run for administrators; for anyone else ``load`` is a
    no-op.
    """

    def __init__(
        self,
        queries: ISectionQueries,
        config: CoreConfig,
        is_admin: Callable[[], bool],
        notify: Optional[Notifier] = None,
    ):
        self._queries = queries
        self._config = config
        self._is_admin = is_admin
        self._notify = notify

        self._status: Dict[SectionName, SectionStatus] = {s: SectionStatus.IDLE for s in SectionName}
        self._errors: Dict[SectionName, str] = {}
        self._data: Dict[SectionName, Any] = {}
        self._tasks: Dict[SectionName, asyncio.Task] = {}
        self._listeners: List[SectionListener] = []
        self._initialized = False

    # --- Read side (read-only for gates) ---

    def status(self, section: Union[SectionName, str]) -> SectionStatus:
        return self._status[SectionName(section)]

    def is_loading(self, section: Union[SectionName, str]) -> bool:
        return self._status[SectionName(section)] is SectionStatus.LOADING

    def get_error_message(self, section: Union[SectionName, str]) -> Optional[str]:
        return self._errors.get(SectionName(section))

    def data(self, section: Union[SectionName, str]) -> Any:
        return self._data.get(SectionName(section))

    def has_errors(self) -> bool:
        return bool(self._errors)

    def all_errors(self) -> Dict[SectionName, str]:
        return dict(self._errors)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def subscribe(self, listener: SectionListener) -> Callable[[], None]:
        """Registers ``listener(section)``, called whenever a section's status changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Loading ---

    async def load(self, section: Union[SectionName, str]) -> Any:
        """
        Loads one section, joining an in-flight load if there is one.

        Returns:
            The section data, or None when the current user is not an administrator.

        Raises:
            Exception: Whatever the backend read raised, after the section's
                error state has been recorded.
        """
        section = SectionName(section)
        if not self._is_admin():
            logger.debug("section_load_skipped_non_admin", section=section.value)
            return None

        task = self._tasks.get(section)
        if task is None or task.done():
            self._errors.pop(section, None)
            self._set_status(section, SectionStatus.LOADING)
            task = asyncio.create_task(self._run(section), name=f"load-{section.value}")
            task.add_done_callback(_consume_result)
            self._tasks[section] = task
        else:
            logger.debug("section_load_joined", section=section.value)

        return await asyncio.shield(task)

    async def load_customers(self) -> Any:
        return await self.load(SectionName.CUSTOMERS)

    async def load_projects(self) -> Any:
        return await self.load(SectionName.PROJECTS)

    async def load_planning(self) -> Any:
        return await self.load(SectionName.PLANNING)

    async def load_time_registration(self) -> Any:
        return await self.load(SectionName.TIME_REGISTRATION)

    async def load_receipts(self) -> Any:
        return await self.load(SectionName.RECEIPTS)

    async def load_quotes(self) -> Any:
        return await self.load(SectionName.QUOTES)

    async def load_personnel(self) -> Any:
        return await self.load(SectionName.PERSONNEL)

    async def load_users(self) -> Any:
        return await self.load(SectionName.USERS)

    async def load_settings(self) -> Any:
        return await self.load(SectionName.SETTINGS)

    async def load_email(self) -> Any:
        return await self.load(SectionName.EMAIL)

    async def load_chat(self) -> Any:
        return await self.load(SectionName.CHAT)

    async def initialize_all(self) -> None:
        """
        Loads every section concurrently and waits for all of them to settle.

        Failed sections keep their own error state. If the whole batch takes
        longer than INIT_TIMEOUT_SEC the remaining loads are cancelled and the
        loader is marked initialized anyway.
        """
        if self._initialized:
            return
        if not self._is_admin():
            logger.info("section_init_skipped_non_admin")
            self._initialized = True
            return

        sections = list(SectionName)
        started = time.monotonic()
        logger.info("section_init_started", sections=len(sections))

        try:
            async with asyncio.timeout(self._config.INIT_TIMEOUT_SEC):
                results = await asyncio.gather(*(self.load(s) for s in sections), return_exceptions=True)
        except TimeoutError:
            logger.error("section_init_timeout", timeout_sec=self._config.INIT_TIMEOUT_SEC)
            self._cancel_in_flight()
        else:
            failed = [s.value for s, r in zip(sections, results) if isinstance(r, BaseException)]
            logger.info(
                "section_init_completed",
                elapsed_ms=round((time.monotonic() - started) * 1000),
                loaded=len(sections) - len(failed),
                total=len(sections),
            )
            if failed:
                logger.warning("section_init_failed_sections", sections=failed)

        self._initialized = True

    def reset(self) -> None:
        """Drops all data and state. Used on logout."""
        self._cancel_in_flight()
        self._errors.clear()
        self._data.clear()
        self._initialized = False
        for section in SectionName:
            self._set_status(section, SectionStatus.IDLE)

    # --- Internals ---

    async def _run(self, section: SectionName) -> Any:
        try:
            result = await self._fetch(section)
        except Exception as e:
            message = str(e) or SECTION_LOAD_FAILED.format(section.value)
            self._errors[section] = message
            self._set_status(section, SectionStatus.ERROR)
            logger.error("section_load_failed", section=section.value, error=message)
            if is_access_denied(e) and self._notify is not None:
                self._notify(ACCESS_DENIED_TITLE, ACCESS_DENIED_DESCRIPTION.format(section.value))
            raise
        else:
            self._data[section] = result
            self._set_status(section, SectionStatus.READY)
            logger.info("section_loaded", section=section.value)
            return result
        finally:
            if self._tasks.get(section) is asyncio.current_task():
                del self._tasks[section]

    async def _fetch(self, section: SectionName) -> Any:
        fetch = getattr(self._queries, "fetch_" + section.loader_name[len("load_"):])
        if section not in _DEGRADE_TO_EMPTY:
            async with asyncio.timeout(self._config.REQUEST_TIMEOUT_SEC):
                return await fetch()
        # Request timeouts degrade too
        try:
            async with asyncio.timeout(self._config.REQUEST_TIMEOUT_SEC):
                return await fetch() or []
        except Exception as e:
            logger.warning("section_load_degraded", section=section.value, error=str(e) or type(e).__name__)
            return []

    def _cancel_in_flight(self) -> None:
        for section, task in list(self._tasks.items()):
            task.cancel()
            self._set_status(section, SectionStatus.IDLE)
        self._tasks.clear()

    def _set_status(self, section: SectionName, status: SectionStatus) -> None:
        if self._status[section] is status:
            return
        self._status[section] = status
        for listener in list(self._listeners):
            try:
                listener(section)
            except Exception as e:
                logger.error("section_listener_error", section=section.value, error=str(e), exc_info=True)
