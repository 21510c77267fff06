from __future__ import annotations
from collections.abc import Sequence
from PyQt6.QtCore import QObject, pyqtSignal

from midi.sysex import format_message

TRAFFIC_BYTES = 12  # bytes of a SysEx frame shown per log line


class AppLogger(QObject):
    """Category-tagged log lines, echoed to stdout and emitted for the log panel.

    May be called from rtmidi callback threads and workers; receivers on the
    GUI thread get the signal queued.
    """

    message_logged = pyqtSignal(str, str)  # category, message

    def log(self, category: str, message: str) -> None:
        print(f"[{category}] {message}", flush=True)
        self.message_logged.emit(category, message)

    def midi(self, message: str) -> None:
        self.log("MIDI", message)

    def traffic(self, direction: str, port: str, message: Sequence[int], note: str = "") -> None:
        """Log one SysEx frame, e.g. ``TX LPD8 Out: F0 47 7F ...``."""
        suffix = f" ({note})" if note else ""
        self.log("SYSEX", f"{direction} {port}{suffix}: {format_message(message, TRAFFIC_BYTES)}")

    def device(self, message: str) -> None:
        self.log("DEVICE", message)

    def general(self, message: str) -> None:
        self.log("GENERAL", message)
