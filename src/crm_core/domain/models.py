import dataclasses
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SectionName(str, Enum):
    """
    Named areas of the admin UI, each with its own data-loading lifecycle.
    """
    CUSTOMERS = "customers"
    PROJECTS = "projects"
    PLANNING = "planning"
    TIME_REGISTRATION = "timeRegistration"
    RECEIPTS = "receipts"
    QUOTES = "quotes"
    PERSONNEL = "personnel"
    USERS = "users"
    SETTINGS = "settings"
    EMAIL = "email"
    CHAT = "chat"

    @property
    def loader_name(self) -> str:
        """Name of the matching ``load_<section>`` method on the section loader."""
        if self is SectionName.TIME_REGISTRATION:
            return "load_time_registration"
        return f"load_{self.value}"


class SectionStatus(Enum):
    """
    Per-section load lifecycle: idle -> loading -> (ready | error).
    """
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclasses.dataclass(frozen=True)
class UserInfo:
    id: str
    email: str
    role: str
    is_admin: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclasses.dataclass(frozen=True)
class AppError:
    """
    Failure raised by a collaborator into the loading machine.
    ``can_retry`` is decided by whoever raises the error.
    """
    code: str
    message: str
    can_retry: bool
    timestamp: datetime = dataclasses.field(default_factory=_utcnow)


@dataclasses.dataclass(frozen=True)
class TransitionLogEntry:
    status: str
    timestamp: float


# Loading states. One frozen dataclass per variant, tagged by ``status``.

@dataclasses.dataclass(frozen=True)
class Initializing:
    status: ClassVar[str] = "initializing"


@dataclasses.dataclass(frozen=True)
class Authenticating:
    status: ClassVar[str] = "authenticating"
    has_cache: bool


@dataclasses.dataclass(frozen=True)
class ValidatingCache:
    status: ClassVar[str] = "validating-cache"


@dataclasses.dataclass(frozen=True)
class LoadingProfile:
    status: ClassVar[str] = "loading-profile"
    user_id: str


@dataclasses.dataclass(frozen=True)
class LoadingPermissions:
    status: ClassVar[str] = "loading-permissions"
    user_id: str


@dataclasses.dataclass(frozen=True)
class InitializingData:
    status: ClassVar[str] = "initializing-data"
    is_admin: bool


@dataclasses.dataclass(frozen=True)
class LoadingSection:
    status: ClassVar[str] = "loading-section"
    section: SectionName
    operation: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class Ready:
    status: ClassVar[str] = "ready"
    user: UserInfo


@dataclasses.dataclass(frozen=True)
class Failed:
    """
    Error state. ``previous_state`` is the tag of the state that was active
    when the error was recorded, ``previous`` the full variant.
    """
    status: ClassVar[str] = "error"
    error: AppError
    previous_state: str
    previous: "LoadingState"


@dataclasses.dataclass(frozen=True)
class Unauthenticated:
    status: ClassVar[str] = "unauthenticated"


LoadingState = Union[
    Initializing,
    Authenticating,
    ValidatingCache,
    LoadingProfile,
    LoadingPermissions,
    InitializingData,
    LoadingSection,
    Ready,
    Failed,
    Unauthenticated,
]


# Collaborator records

@dataclasses.dataclass(frozen=True)
class Session:
    user_id: str
    email: str


class Profile(BaseModel):
    """Row of the ``profiles`` table as seen by the bootstrapper."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    full_name: str = Field(default="", description="Display name")
    role: str = Field(..., description="Role name, e.g. Administrator or Installateur")
    status: Literal["Actief", "Inactief"] = Field(default="Actief")
    chat_language: Optional[str] = Field(default=None)

    @property
    def is_active(self) -> bool:
        return self.status == "Actief"
