"""
Error codes and constructors for failures raised into the loading machine.

Codes form an open set; collaborators may introduce new ones.
"""
from .models import AppError

# Authentication
SESSION_CHECK_FAILED = "session_check_failed"
SESSION_EXPIRED = "session_expired"

# Profile / permissions
PROFILE_NOT_FOUND = "profile_not_found"
PROFILE_INACTIVE = "profile_inactive"
PROFILE_FETCH_FAILED = "profile_fetch_failed"
PERMISSIONS_FETCH_FAILED = "permissions_fetch_failed"

TIMEOUT = "timeout"

# Postgres / PostgREST codes reported for row-level-security denials
ACCESS_DENIED_CODES = frozenset({"PGRST301", "42501"})

# Notice shown when a section read is denied
ACCESS_DENIED_TITLE = "Toegang geweigerd"
ACCESS_DENIED_DESCRIPTION = "Geen toegang tot {}. Controleer uw rechten."
SECTION_LOAD_FAILED = "Kon {} niet laden"


class ProfileNotFoundError(LookupError):
    """Raised by profile services when no profile row exists for a user."""

    def __init__(self, user_id: str):
        super().__init__(f"No profile for user {user_id}")
        self.user_id = user_id


def auth_error(exc: BaseException) -> AppError:
    """Session lookup failed. Transient network failures may be retried."""
    transient = isinstance(exc, (OSError, TimeoutError))
    return AppError(code=SESSION_CHECK_FAILED, message=str(exc) or type(exc).__name__, can_retry=transient)


def profile_error(exc: BaseException) -> AppError:
    return AppError(code=PROFILE_FETCH_FAILED, message=str(exc) or type(exc).__name__, can_retry=True)


def permissions_error(exc: BaseException) -> AppError:
    return AppError(code=PERMISSIONS_FETCH_FAILED, message=str(exc) or type(exc).__name__, can_retry=True)


def timeout_error(operation: str) -> AppError:
    return AppError(code=TIMEOUT, message=f"{operation} timed out", can_retry=True)


def error_code_of(exc: BaseException) -> str | None:
    """
    Best-effort extraction of a backend error code.
    asyncpg exposes ``sqlstate``, PostgREST-style errors expose ``code``.
    """
    code = getattr(exc, "sqlstate", None) or getattr(exc, "code", None)
    return str(code) if code is not None else None


def is_access_denied(exc: BaseException) -> bool:
    return error_code_of(exc) in ACCESS_DENIED_CODES
