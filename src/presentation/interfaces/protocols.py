from typing import Any, Callable, Coroutine, Optional, Protocol

from src.crm_core.domain.models import SectionName, SectionStatus


class ISectionLoader(Protocol):
    """
    Read side of the section data loader plus its load entry point.
    Section gates only read state; they never write it.
    """
    def is_loading(self, section: SectionName) -> bool:
        ...

    def get_error_message(self, section: SectionName) -> Optional[str]:
        ...

    def status(self, section: SectionName) -> SectionStatus:
        ...

    async def load(self, section: SectionName) -> Any:
        """Loads the section, joining an in-flight load if there is one."""
        ...

    def subscribe(self, listener: Callable[[SectionName], None]) -> Callable[[], None]:
        ...


class ICapabilityCheck(Protocol):
    """
    Policy deciding whether a role's views go through section gating.
    """
    def allows_gating(self, role: str) -> bool:
        ...


class IBootstrapper(Protocol):
    """
    The part of the session bootstrapper the global screen needs.
    """
    async def start(self) -> None:
        """Runs the bootstrap path from the top."""
        ...

    async def retry(self) -> bool:
        """Re-attempts the failed step. Returns False if nothing was retryable."""
        ...


# Schedules a coroutine on the core's event loop
TaskRunner = Callable[[Coroutine[Any, Any, Any]], Any]
