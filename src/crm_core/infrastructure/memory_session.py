import structlog
from typing import Callable, List, Optional
from ..domain.events import SessionChanged, SessionEventKind
from ..domain.interfaces import SessionListener
from ..domain.models import Session

logger = structlog.get_logger()


class InMemorySessionProvider:
    """
    ISessionProvider holding the session in process memory.
    Used by the development entry points and tests.
    """
    def __init__(self, session: Optional[Session] = None):
        self._session = session
        self._listeners: List[SessionListener] = []

    async def get_current_session(self) -> Optional[Session]:
        return self._session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_in(self, session: Session) -> None:
        self._session = session
        logger.info("session_signed_in", user_id=session.user_id)
        self._emit(SessionChanged(kind=SessionEventKind.SIGNED_IN, session=session))

    async def sign_out(self) -> None:
        if self._session is None:
            return
        logger.info("session_signed_out", user_id=self._session.user_id)
        self._session = None
        self._emit(SessionChanged(kind=SessionEventKind.SIGNED_OUT, session=None))

    def _emit(self, event: SessionChanged) -> None:
        for listener in list(self._listeners):
            listener(event)
