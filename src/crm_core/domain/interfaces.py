from typing import Any, Callable, FrozenSet, List, Optional, Protocol

from .events import SessionChanged
from .models import Profile, Session

SessionListener = Callable[[SessionChanged], None]


class ISessionProvider(Protocol):
    """
    Source of the authenticated session and its login/logout events.
    """
    async def get_current_session(self) -> Optional[Session]:
        """Returns the active session, or None when nobody is logged in."""
        ...

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Registers a listener for session changes. Returns an unsubscribe callable."""
        ...

    async def sign_out(self) -> None:
        ...


class IProfileService(Protocol):
    async def fetch_profile(self, user_id: str) -> Profile:
        """
        Fetches the profile row for a user.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        ...


class IPermissionService(Protocol):
    """
    Role -> capability-set lookup.
    """
    async def capabilities_for(self, role: str) -> FrozenSet[str]:
        ...


class ISectionQueries(Protocol):
    """
    Backend reads for the admin sections. One coroutine per section.
    Write-free (ISP).
    """
    async def fetch_customers(self) -> List[Any]: ...
    async def fetch_projects(self) -> List[Any]: ...
    async def fetch_planning(self) -> List[Any]: ...
    async def fetch_time_registration(self) -> List[Any]: ...
    async def fetch_receipts(self) -> List[Any]: ...
    async def fetch_quotes(self) -> List[Any]: ...
    async def fetch_personnel(self) -> List[Any]: ...
    async def fetch_users(self) -> List[Any]: ...
    async def fetch_settings(self) -> List[Any]: ...
    async def fetch_email(self) -> List[Any]: ...
    async def fetch_chat(self) -> Any: ...
