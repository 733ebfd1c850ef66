import dataclasses
from enum import Enum
from typing import Optional

from .models import Session


class SessionEventKind(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclasses.dataclass(frozen=True)
class SessionChanged:
    """
    Event emitted by a session provider on login/logout.
    ``session`` is None for SIGNED_OUT.
    """
    kind: SessionEventKind
    session: Optional[Session]
