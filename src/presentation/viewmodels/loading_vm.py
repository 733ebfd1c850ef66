import logging
from PySide6.QtCore import QObject, Signal
from typing import Optional

from src.crm_core.application.loading_machine import LoadingMachine
from src.crm_core.domain import errors
from src.crm_core.domain.models import Failed, LoadingSection, LoadingState
from src.presentation.interfaces.protocols import IBootstrapper
from src.presentation.resources.strings import UIStrings
from src.presentation.state.view_state import ScreenState

logger = logging.getLogger(__name__)

_FRIENDLY_MESSAGES = {
    errors.SESSION_CHECK_FAILED: UIStrings.ERR_SESSION_CHECK_FAILED,
    errors.SESSION_EXPIRED: UIStrings.ERR_SESSION_EXPIRED,
    errors.PROFILE_NOT_FOUND: UIStrings.ERR_PROFILE_NOT_FOUND,
    errors.PROFILE_INACTIVE: UIStrings.ERR_PROFILE_INACTIVE,
    errors.PROFILE_FETCH_FAILED: UIStrings.ERR_PROFILE_FETCH_FAILED,
    errors.PERMISSIONS_FETCH_FAILED: UIStrings.ERR_PERMISSIONS_FETCH_FAILED,
    errors.TIMEOUT: UIStrings.ERR_TIMEOUT,
    "section_load_failed": UIStrings.ERR_SECTION_LOAD_FAILED,
}


def screen_for(state: LoadingState) -> ScreenState:
    """
    Maps a loading state to the top-level screen.
    A section escalated to the global machine keeps the application visible.
    """
    if state.status in ("ready", "loading-section"):
        return ScreenState.READY
    if state.status == "unauthenticated":
        return ScreenState.LOGIN
    if state.status == "error":
        return ScreenState.ERROR
    return ScreenState.LOADING


class LoadingViewModel(QObject):
    """
    ViewModel for the global loading/error screen.
    Wraps the loading machine and turns its transitions into Qt signals.
    Internal state names never reach user-facing text.
    """

    state_changed = Signal(object)
    screen_changed = Signal(ScreenState)

    def __init__(self, machine: LoadingMachine, bootstrapper: IBootstrapper):
        super().__init__()
        self._machine = machine
        self._bootstrapper = bootstrapper
        self._screen = screen_for(machine.state)
        self._unsubscribe = machine.subscribe(self._on_transition)

    @property
    def state(self) -> LoadingState:
        return self._machine.state

    @property
    def screen(self) -> ScreenState:
        return self._screen

    @property
    def is_loading(self) -> bool:
        return self._machine.is_loading

    @property
    def is_error(self) -> bool:
        return self._machine.is_error

    @property
    def is_ready(self) -> bool:
        return self._machine.is_ready

    @property
    def is_authenticated(self) -> bool:
        return self._machine.is_authenticated

    @property
    def error_message(self) -> Optional[str]:
        """Friendly Dutch message for the error screen, None outside the error state."""
        state = self._machine.state
        if not isinstance(state, Failed):
            return None
        friendly = _FRIENDLY_MESSAGES.get(state.error.code)
        if friendly is not None:
            return friendly
        return UIStrings.ERR_GENERIC.format(state.error.message)

    @property
    def can_retry(self) -> bool:
        state = self._machine.state
        return isinstance(state, Failed) and state.error.can_retry

    @property
    def status_text(self) -> str:
        state = self._machine.state
        if isinstance(state, LoadingSection):
            title = UIStrings.SECTION_TITLES.get(state.section.value, state.section.value)
            return UIStrings.LOADING_SECTION.format(title)
        if self._screen is ScreenState.LOGIN:
            return UIStrings.LOGIN_REQUIRED
        return UIStrings.LOADING_APP

    async def retry(self) -> bool:
        """Retries the failed step; a no-op unless the error allows retrying."""
        if not self.can_retry:
            logger.info("Retry ignored: current state is not retryable.")
            return False
        return await self._bootstrapper.retry()

    async def reload(self) -> None:
        """Full restart of the bootstrap path."""
        logger.info("Reloading session from scratch.")
        self._machine.reset()
        await self._bootstrapper.start()

    def close(self) -> None:
        self._unsubscribe()

    def _on_transition(self, previous: LoadingState, current: LoadingState) -> None:
        self.state_changed.emit(current)
        screen = screen_for(current)
        if screen != self._screen:
            self._screen = screen
            self.screen_changed.emit(screen)
