from __future__ import annotations


class MidiError(RuntimeError):
    """Base class for SysEx engine failures."""


class EndpointNotFound(MidiError):
    def __init__(self, name: str, direction: str = "output") -> None:
        super().__init__(f"No MIDI {direction} port named '{name}'")
        self.name = name
        self.direction = direction


class TransactTimeout(MidiError, TimeoutError):
    def __init__(self, timeout: float, what: str = "response") -> None:
        super().__init__(f"No matching {what} within {timeout * 1000:.0f} ms")
        self.timeout = timeout


class MalformedResponse(MidiError, ValueError):
    pass


class NoDeviceSelected(MidiError):
    def __init__(self) -> None:
        super().__init__("No LPD8 selected")


class TransactFailure(MidiError):
    """Raised by DeviceSession; the underlying error is in ``__cause__``."""

    def __init__(self, message: str, slot: int | None = None) -> None:
        super().__init__(message)
        self.slot = slot
