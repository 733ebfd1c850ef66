import asyncio
from typing import Awaitable, Callable, Optional, TypeVar, Union

import structlog

from ..config import CoreConfig
from ..domain import errors
from ..domain.events import SessionChanged, SessionEventKind
from ..domain.interfaces import IPermissionService, IProfileService, ISessionProvider
from ..domain.models import AppError, Failed, LoadingSection, SectionName, Session, UserInfo
from ..infrastructure.logging import bind_session, clear_session
from .loading_machine import LoadingMachine
from .permissions import CapabilityCheck, is_admin_capabilities, resolve_capabilities
from .profile_cache import ProfileCache
from .section_loader import SectionDataLoader

logger = structlog.get_logger()

T = TypeVar("T")


class SessionBootstrapper:
    """
    Drives the loading machine along the bootstrap path:
    initializing -> authenticating -> loading-profile -> loading-permissions -> ready.

    Each run holds a token (the session generation it started in). Login,
    logout and a fresh ``start`` bump the generation, and a run whose token is
    stale drops its result instead of transitioning the machine.
    """

    def __init__(
        self,
        machine: LoadingMachine,
        sessions: ISessionProvider,
        profiles: IProfileService,
        permissions: IPermissionService,
        section_loader: SectionDataLoader,
        cache: ProfileCache,
        config: CoreConfig,
        capability_check: Optional[CapabilityCheck] = None,
    ):
        self._machine = machine
        self._sessions = sessions
        self._profiles = profiles
        self._permissions = permissions
        self._loader = section_loader
        self._cache = cache
        self._config = config
        self._capability_check = capability_check

        self._generation = 0
        self._current_user: Optional[UserInfo] = None
        self._boot_task: Optional[asyncio.Task] = None
        self._init_task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def current_user(self) -> Optional[UserInfo]:
        return self._current_user

    @property
    def is_admin(self) -> bool:
        return self._current_user is not None and self._current_user.is_admin

    def attach(self) -> None:
        """Starts listening to session changes (login/logout)."""
        if self._unsubscribe is None:
            self._unsubscribe = self._sessions.subscribe(self._on_session_changed)

    async def shutdown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._generation += 1
        for task in (self._boot_task, self._init_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        logger.info("bootstrap_shutdown")

    # --- Bootstrap path ---

    async def start(self) -> None:
        """
        Runs the bootstrap path once. Failures end in the machine's error
        state; nothing is raised to the caller.
        """
        self._generation += 1
        token = self._generation
        self._cancel_init_task()

        self._machine.start_authenticating(self._cache.has_fresh())
        try:
            session = await self._bounded(self._sessions.get_current_session())
        except Exception as e:
            if self._is_current(token):
                self._machine.set_error(self._failure(e, "session check", errors.auth_error))
            return

        if not self._is_current(token):
            logger.info("bootstrap_stale_result_dropped", step="session")
            return
        if session is None:
            self._current_user = None
            self._machine.set_unauthenticated()
            return

        await self._load_user(session, token)

    async def _load_user(self, session: Session, token: int) -> None:
        user_id = session.user_id
        cached = self._cache.get(user_id)

        # 1. Profile
        self._machine.start_loading_profile(user_id)
        try:
            profile = await self._bounded(self._profiles.fetch_profile(user_id))
        except errors.ProfileNotFoundError:
            if self._is_current(token):
                self._cache.invalidate(user_id)
                self._machine.set_error(AppError(
                    code=errors.PROFILE_NOT_FOUND,
                    message=f"No profile for user {user_id}",
                    can_retry=False,
                ))
            return
        except Exception as e:
            if not self._is_current(token):
                return
            if cached is None:
                self._machine.set_error(self._failure(e, "profile fetch", errors.profile_error))
                return
            logger.warning("profile_fetch_failed_using_cache", user_id=user_id, error=str(e))
            profile = cached.profile

        if not self._is_current(token):
            logger.info("bootstrap_stale_result_dropped", step="profile", user_id=user_id)
            return
        if not profile.is_active:
            self._machine.set_error(AppError(
                code=errors.PROFILE_INACTIVE,
                message="Account is inactive",
                can_retry=False,
            ))
            return

        # 2. Permissions
        self._machine.start_loading_permissions(user_id)
        try:
            capabilities = await self._bounded(self._permissions.capabilities_for(profile.role))
        except Exception as e:
            if not self._is_current(token):
                return
            if cached is None or cached.profile.role != profile.role:
                self._machine.set_error(self._failure(e, "permission fetch", errors.permissions_error))
                return
            logger.warning("permissions_fetch_failed_using_cache", user_id=user_id, error=str(e))
            capabilities = cached.capabilities

        if not self._is_current(token):
            logger.info("bootstrap_stale_result_dropped", step="permissions", user_id=user_id)
            return

        # 3. Ready
        capabilities = resolve_capabilities(profile.role, capabilities)
        self._cache.store(user_id, profile, capabilities)
        if self._capability_check is not None:
            self._capability_check.grant(profile.role, capabilities)
        self._current_user = UserInfo(
            id=user_id,
            email=session.email,
            role=profile.role,
            is_admin=is_admin_capabilities(capabilities),
        )
        bind_session(user_id, profile.role)
        self._machine.set_ready(self._current_user)

        # Admin sections load in the background and never touch the global machine
        if self._current_user.is_admin:
            self._init_task = asyncio.create_task(self._loader.initialize_all(), name="initialize-sections")

    # --- Section escalation and retry ---

    async def load_section(self, section: Union[SectionName, str], operation: Optional[str] = None) -> bool:
        """
        Loads a section through the global machine: ``loading-section`` while
        it runs, ``error`` on failure, back to ``ready`` on success.
        Returns True when the section loaded.
        """
        section = SectionName(section)
        token = self._generation
        self._machine.start_loading_section(section, operation)
        try:
            await getattr(self._loader, section.loader_name)()
        except Exception as e:
            if self._is_current(token):
                self._machine.set_error(AppError(
                    code="section_load_failed",
                    message=str(e) or errors.SECTION_LOAD_FAILED.format(section.value),
                    can_retry=True,
                ))
            return False
        if self._is_current(token) and self._current_user is not None:
            self._machine.set_ready(self._current_user)
        return True

    async def retry(self) -> bool:
        """
        Re-attempts whatever failed, based on the error's previous state.
        Returns False when there is nothing retryable.
        """
        state = self._machine.state
        if not isinstance(state, Failed) or not state.error.can_retry:
            return False

        logger.info("retry_requested", previous_state=state.previous_state, code=state.error.code)
        if isinstance(state.previous, LoadingSection):
            await self.load_section(state.previous.section, operation="retry")
        else:
            await self.start()
        return True

    async def sign_out(self) -> None:
        await self._sessions.sign_out()
        self._handle_signed_out()

    # --- Session events ---

    def _on_session_changed(self, event: SessionChanged) -> None:
        logger.info("session_changed", kind=event.kind.value)
        if event.kind is SessionEventKind.SIGNED_OUT:
            self._handle_signed_out()
            return
        self._boot_task = asyncio.get_running_loop().create_task(self.start(), name="bootstrap")

    def _handle_signed_out(self) -> None:
        if self._current_user is None and self._machine.status == "unauthenticated":
            return
        self._generation += 1
        self._cancel_init_task()
        self._current_user = None
        self._cache.clear()
        clear_session()
        self._loader.reset()
        self._machine.reset()
        self._machine.set_unauthenticated()

    # --- Helpers ---

    def _is_current(self, token: int) -> bool:
        return token == self._generation

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        async with asyncio.timeout(self._config.REQUEST_TIMEOUT_SEC):
            return await awaitable

    @staticmethod
    def _failure(exc: Exception, operation: str, fallback: Callable[[BaseException], AppError]) -> AppError:
        if isinstance(exc, TimeoutError):
            return errors.timeout_error(operation)
        logger.error("bootstrap_step_failed", operation=operation, error=str(exc), exc_info=True)
        return fallback(exc)

    def _cancel_init_task(self) -> None:
        if self._init_task is not None and not self._init_task.done():
            self._init_task.cancel()
        self._init_task = None
