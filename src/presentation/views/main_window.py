from typing import List, Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import (
    QDockWidget,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from src.presentation.interfaces.protocols import TaskRunner
from src.presentation.resources.strings import UIStrings
from src.presentation.state.view_state import ScreenState
from src.presentation.viewmodels.loading_vm import LoadingViewModel
from src.presentation.views.section_gate import SectionGateWidget


class MainWindow(QMainWindow):
    """
    Top-level window: a loading screen, a login notice, a full-screen error
    with retry/reload, or the application tabs, depending on the loading state.
    """

    def __init__(
        self,
        vm: LoadingViewModel,
        gates: List[SectionGateWidget],
        run_task: TaskRunner,
        devtools: Optional[QDockWidget] = None,
    ):
        super().__init__()
        self._vm = vm
        self._run_task = run_task
        self.setWindowTitle("CRM")

        self._screens = QStackedWidget()

        # Loading / login
        self._status_label = QLabel()
        self._status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        # Error
        self._error_page = QWidget()
        error_layout = QVBoxLayout(self._error_page)
        error_layout.addWidget(QLabel(UIStrings.ERR_TITLE))
        self._error_message = QLabel()
        self._error_message.setWordWrap(True)
        error_layout.addWidget(self._error_message)
        buttons = QHBoxLayout()
        self.retry_button = QPushButton(UIStrings.BTN_RETRY)
        self.reload_button = QPushButton(UIStrings.BTN_RELOAD)
        self.retry_button.clicked.connect(self._on_retry_clicked)
        self.reload_button.clicked.connect(self._on_reload_clicked)
        buttons.addWidget(self.retry_button)
        buttons.addWidget(self.reload_button)
        error_layout.addLayout(buttons)
        error_layout.addStretch()

        # Application
        self._tabs = QTabWidget()
        for gate in gates:
            self._tabs.addTab(gate, gate.view_model.title)

        self._screens.addWidget(self._status_label)
        self._screens.addWidget(self._error_page)
        self._screens.addWidget(self._tabs)
        self.setCentralWidget(self._screens)

        if devtools is not None:
            self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, devtools)

        self._vm.screen_changed.connect(self.apply_screen)
        self._vm.state_changed.connect(self._on_state_changed)
        self.apply_screen(self._vm.screen)

    @Slot(ScreenState)
    def apply_screen(self, screen: ScreenState) -> None:
        if screen is ScreenState.READY:
            self._screens.setCurrentWidget(self._tabs)
        elif screen is ScreenState.ERROR:
            self._error_message.setText(self._vm.error_message or "")
            self.retry_button.setEnabled(self._vm.can_retry)
            self._screens.setCurrentWidget(self._error_page)
        else:
            self._status_label.setText(self._vm.status_text)
            self._screens.setCurrentWidget(self._status_label)

    @Slot(object)
    def _on_state_changed(self, state: object) -> None:
        self.apply_screen(self._vm.screen)

    @Slot()
    def _on_retry_clicked(self) -> None:
        self._run_task(self._vm.retry())

    @Slot()
    def _on_reload_clicked(self) -> None:
        self._run_task(self._vm.reload())

    @Slot(str, str)
    def show_notice(self, title: str, description: str) -> None:
        self.statusBar().showMessage(f"{title}: {description}", 8000)
