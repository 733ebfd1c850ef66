from PySide6.QtCore import QObject, Signal


class NoticeBridge(QObject):
    """
    Carries user notices (title, description) from the core loop thread
    to the GUI thread. Pass ``bridge.post`` as the core's notify callback.
    """

    notice = Signal(str, str)

    def post(self, title: str, description: str) -> None:
        self.notice.emit(title, description)
