from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import QLabel, QPushButton, QStackedWidget, QVBoxLayout, QWidget

from src.presentation.interfaces.protocols import TaskRunner
from src.presentation.resources.strings import UIStrings
from src.presentation.state.view_state import GateView
from src.presentation.viewmodels.section_gate_vm import SectionGateViewModel


class SectionGateWidget(QStackedWidget):
    """
    Renders a section's content, a loading placeholder or an error panel
    with a retry button, as decided by the SectionGateViewModel.
    """

    def __init__(self, vm: SectionGateViewModel, content: QWidget, run_task: TaskRunner, parent: QWidget = None):
        super().__init__(parent)
        self._vm = vm
        self._run_task = run_task

        # Loading page
        self._loading_label = QLabel(vm.loading_text)
        self._loading_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        # Error page
        self._error_page = QWidget()
        layout = QVBoxLayout(self._error_page)
        self._error_title = QLabel(vm.error_title)
        self._error_message = QLabel()
        self._error_message.setWordWrap(True)
        self.retry_button = QPushButton(UIStrings.BTN_RETRY)
        self.retry_button.clicked.connect(self._on_retry_clicked)
        layout.addWidget(self._error_title)
        layout.addWidget(self._error_message)
        layout.addWidget(self.retry_button)
        layout.addStretch()

        self._content = content

        self.addWidget(self._loading_label)
        self.addWidget(self._error_page)
        self.addWidget(self._content)

        self._vm.view_changed.connect(self.apply_view)
        self.apply_view(self._vm.view_mode)

    @property
    def view_model(self) -> SectionGateViewModel:
        return self._vm

    @Slot(GateView)
    def apply_view(self, view: GateView) -> None:
        if view is GateView.LOADING:
            self.setCurrentWidget(self._loading_label)
        elif view is GateView.ERROR:
            self._error_message.setText(self._vm.error_message or "")
            self.setCurrentWidget(self._error_page)
        else:
            self.setCurrentWidget(self._content)

    @Slot()
    def _on_retry_clicked(self) -> None:
        self._run_task(self._vm.retry())
