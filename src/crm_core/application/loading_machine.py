import time
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple, Union

import structlog

from ..domain.models import (
    AppError,
    Authenticating,
    Failed,
    Initializing,
    InitializingData,
    LoadingPermissions,
    LoadingProfile,
    LoadingSection,
    LoadingState,
    Ready,
    SectionName,
    TransitionLogEntry,
    Unauthenticated,
    UserInfo,
    ValidatingCache,
)

logger = structlog.get_logger()

HISTORY_LIMIT = 20

StateListener = Callable[[LoadingState, LoadingState], None]

_NOT_LOADING = ("ready", "unauthenticated", "error")
_NOT_AUTHENTICATED = ("unauthenticated", "initializing")


class LoadingMachine:
    """
    Holds the single authoritative loading state of one application session.

    Transitions are synchronous and never await, so reading the current state,
    appending the history entry and committing the new state happen as one
    step. Out-of-order transitions are accepted as-is: callers that race
    (e.g. a profile fetch finishing after logout) must check their own
    session token before calling in.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._state: LoadingState = Initializing()
        self._history: Deque[TransitionLogEntry] = deque(maxlen=HISTORY_LIMIT)
        self._listeners: List[StateListener] = []

    # --- Read side ---

    @property
    def state(self) -> LoadingState:
        return self._state

    @property
    def status(self) -> str:
        return self._state.status

    @property
    def history(self) -> Tuple[TransitionLogEntry, ...]:
        """Oldest first. Never longer than HISTORY_LIMIT."""
        return tuple(self._history)

    @property
    def is_loading(self) -> bool:
        return self._state.status not in _NOT_LOADING

    @property
    def is_error(self) -> bool:
        return self._state.status == "error"

    @property
    def is_ready(self) -> bool:
        return self._state.status == "ready"

    @property
    def is_authenticated(self) -> bool:
        return self._state.status not in _NOT_AUTHENTICATED

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Registers ``listener(previous, current)``, called after every commit.
        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Transitions ---

    def start_authenticating(self, has_cache: bool) -> None:
        self._transition(Authenticating(has_cache=has_cache))

    def start_validating_cache(self) -> None:
        self._transition(ValidatingCache())

    def start_loading_profile(self, user_id: str) -> None:
        if not user_id:
            raise ValueError("user_id must be non-empty")
        self._transition(LoadingProfile(user_id=user_id))

    def start_loading_permissions(self, user_id: str) -> None:
        self._transition(LoadingPermissions(user_id=user_id))

    def start_initializing_data(self, is_admin: bool) -> None:
        self._transition(InitializingData(is_admin=is_admin))

    def start_loading_section(self, section: Union[SectionName, str], operation: Optional[str] = None) -> None:
        # Unknown section names raise ValueError here
        self._transition(LoadingSection(section=SectionName(section), operation=operation))

    def set_ready(self, user: UserInfo) -> None:
        logger.info("loading_state_ready", user_id=user.id, role=user.role, is_admin=user.is_admin)
        self._transition(Ready(user=user))

    def set_error(self, error: AppError) -> None:
        previous = self._state
        logger.error(
            "loading_state_error",
            code=error.code,
            message=error.message,
            can_retry=error.can_retry,
            previous_state=previous.status,
        )
        self._transition(Failed(error=error, previous_state=previous.status, previous=previous))

    def set_unauthenticated(self) -> None:
        logger.info("loading_state_unauthenticated")
        self._transition(Unauthenticated())

    def reset(self) -> None:
        """Back to ``initializing`` with an empty history. Used on logout."""
        previous = self._state
        self._state = Initializing()
        self._history.clear()
        logger.info("loading_state_reset", from_status=previous.status)
        self._notify(previous, self._state)

    def _transition(self, new_state: LoadingState) -> None:
        previous = self._state
        self._history.append(TransitionLogEntry(status=previous.status, timestamp=self._clock()))
        self._state = new_state
        logger.debug("loading_state_transition", from_status=previous.status, to_status=new_state.status)
        self._notify(previous, new_state)

    def _notify(self, previous: LoadingState, current: LoadingState) -> None:
        for listener in list(self._listeners):
            try:
                listener(previous, current)
            except Exception as e:
                logger.error("loading_state_listener_error", error=str(e), exc_info=True)
