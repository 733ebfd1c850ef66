from typing import Optional

from PySide6.QtCore import QTimer, Slot
from PySide6.QtWidgets import QDockWidget, QLabel, QListWidget, QVBoxLayout, QWidget

from src.config import Settings
from src.crm_core.application.loading_machine import LoadingMachine
from src.presentation.resources.strings import UIStrings
from src.presentation.viewmodels.devtools_vm import DevToolsViewModel


class DevToolsOverlay(QDockWidget):
    """
    Development-only dock showing the loading state and recent transitions.
    """

    def __init__(self, vm: DevToolsViewModel, parent: QWidget = None):
        super().__init__(UIStrings.DEVTOOLS_TITLE, parent)
        self._vm = vm

        body = QWidget()
        layout = QVBoxLayout(body)
        self.state_label = QLabel()
        self.history_list = QListWidget()
        layout.addWidget(self.state_label)
        layout.addWidget(QLabel(UIStrings.DEVTOOLS_HISTORY))
        layout.addWidget(self.history_list)
        self.setWidget(body)

        self._vm.refreshed.connect(self.refresh)

        # Keeps the relative timestamps current
        self._timer = QTimer(self)
        self._timer.timeout.connect(self.refresh)
        self._timer.start(1000)

        self.refresh()

    @Slot()
    def refresh(self) -> None:
        self.state_label.setText("\n".join(self._vm.state_lines()))
        self.history_list.clear()
        self.history_list.addItems(self._vm.history_lines())


def create_devtools(settings: Settings, machine: LoadingMachine, rows: int = 10, parent: QWidget = None) -> Optional[DevToolsOverlay]:
    """
    Builds the overlay in development. Returns None in every other
    environment, so nothing is constructed or subscribed there.
    """
    if not settings.is_development:
        return None
    return DevToolsOverlay(DevToolsViewModel(machine, rows=rows), parent)
