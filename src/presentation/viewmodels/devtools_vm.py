import time
from PySide6.QtCore import QObject, Signal
from typing import Callable, List

from src.crm_core.application.diagnostics import DiagnosticsSnapshot, snapshot
from src.crm_core.application.loading_machine import LoadingMachine
from src.crm_core.domain.models import LoadingState


class DevToolsViewModel(QObject):
    """
    Read-only ViewModel for the diagnostics overlay.
    Only reads the machine; never calls a transition.
    """

    refreshed = Signal()

    def __init__(self, machine: LoadingMachine, rows: int = 10, clock: Callable[[], float] = time.time):
        super().__init__()
        self._machine = machine
        self._rows = rows
        self._clock = clock
        self._unsubscribe = machine.subscribe(self._on_transition)

    def snapshot(self) -> DiagnosticsSnapshot:
        return snapshot(self._machine, self._rows, now=self._clock())

    def state_lines(self) -> List[str]:
        """Discriminant first, then one ``key: value`` line per payload field."""
        snap = self.snapshot()
        lines = [f"status: {snap.status}"]
        lines.extend(f"{key}: {value}" for key, value in snap.details.items())
        return lines

    def history_lines(self) -> List[str]:
        return [f"{row.status} ({row.ago})" for row in self.snapshot().history]

    def close(self) -> None:
        self._unsubscribe()

    def _on_transition(self, previous: LoadingState, current: LoadingState) -> None:
        self.refreshed.emit()
