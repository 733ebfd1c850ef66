from enum import Enum, auto

class ScreenState(Enum):
    """
    Which top-level screen the window shows for the global loading state.
    """
    LOADING = auto()       # Anything on the bootstrap path
    READY = auto()         # Session ready, show the application
    LOGIN = auto()         # No session
    ERROR = auto()         # Bootstrap failed, full-screen error with retry/reload

class GateView(Enum):
    """
    What a section gate renders.
    """
    CONTENT = auto()       # Children (also when the gate is bypassed)
    LOADING = auto()       # Section load in flight
    ERROR = auto()         # Section load failed, retry offered
