"""
Read-only views over the loading machine for developer diagnostics.
Nothing here mutates machine state.
"""
import dataclasses
import time
from typing import Any, Dict, List, Optional

from ..domain.models import Failed, LoadingState, SectionName
from .loading_machine import LoadingMachine


@dataclasses.dataclass(frozen=True)
class HistoryRow:
    status: str
    timestamp: float
    ago: str


@dataclasses.dataclass(frozen=True)
class DiagnosticsSnapshot:
    status: str
    details: Dict[str, Any]
    flags: Dict[str, bool]
    history: List[HistoryRow]


def format_relative(timestamp: float, now: float) -> str:
    """
    Formats the age of ``timestamp`` as "<n>ms ago", "<n>s ago" or "<n>m ago".
    """
    elapsed_ms = max(0, int((now - timestamp) * 1000))
    if elapsed_ms < 1000:
        return f"{elapsed_ms}ms ago"
    if elapsed_ms < 60_000:
        return f"{elapsed_ms // 1000}s ago"
    return f"{elapsed_ms // 60_000}m ago"


def describe_state(state: LoadingState) -> Dict[str, Any]:
    """Payload fields of a state, flattened to JSON-friendly values."""
    if isinstance(state, Failed):
        return {
            "code": state.error.code,
            "message": state.error.message,
            "can_retry": state.error.can_retry,
            "previous_state": state.previous_state,
        }
    details: Dict[str, Any] = {}
    for field in dataclasses.fields(state):
        value = getattr(state, field.name)
        if isinstance(value, SectionName):
            value = value.value
        elif dataclasses.is_dataclass(value):
            value = dataclasses.asdict(value)
        if value is not None:
            details[field.name] = value
    return details


def snapshot(machine: LoadingMachine, rows: int, now: Optional[float] = None) -> DiagnosticsSnapshot:
    """
    Current state plus the last ``rows`` history entries, newest first.
    """
    now = time.time() if now is None else now
    recent = list(machine.history)[-rows:] if rows > 0 else []
    return DiagnosticsSnapshot(
        status=machine.status,
        details=describe_state(machine.state),
        flags={
            "is_loading": machine.is_loading,
            "is_error": machine.is_error,
            "is_ready": machine.is_ready,
            "is_authenticated": machine.is_authenticated,
        },
        history=[
            HistoryRow(status=e.status, timestamp=e.timestamp, ago=format_relative(e.timestamp, now))
            for e in reversed(recent)
        ],
    )
