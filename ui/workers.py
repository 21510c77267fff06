from __future__ import annotations
from collections.abc import Callable
from PyQt6.QtCore import QThread, pyqtSignal


class SessionWorker(QThread):
    """Runs one blocking DeviceSession call off the GUI thread."""
    succeeded = pyqtSignal(object)   # return value of the call
    failed = pyqtSignal(str)         # error text, ready to show

    def __init__(self, fn: Callable[[], object], parent=None) -> None:
        super().__init__(parent)
        self._fn = fn

    def run(self) -> None:
        try:
            result = self._fn()
        except Exception as exc:
            self.failed.emit(str(exc))
        else:
            self.succeeded.emit(result)
