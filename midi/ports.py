from __future__ import annotations
from dataclasses import dataclass
import rtmidi

from midi.errors import EndpointNotFound


@dataclass(frozen=True)
class EndpointRef:
    """A port as enumerated right now. ``index`` is only valid until the next enumeration."""

    index: int
    name: str


@dataclass(frozen=True)
class DevicePortPair:
    """Input/output port names of one LPD8. Names, not indices, are the identity."""

    input_name: str
    output_name: str

    @property
    def label(self) -> str:
        return f"{self.input_name} / {self.output_name}"


def _enumerate(midi) -> list[EndpointRef]:
    try:
        return [EndpointRef(i, name) for i, name in enumerate(midi.get_ports())]
    finally:
        midi.delete()


def list_input_ports() -> list[EndpointRef]:
    return _enumerate(rtmidi.MidiIn())


def list_output_ports() -> list[EndpointRef]:
    return _enumerate(rtmidi.MidiOut())


def resolve_input(name: str) -> EndpointRef:
    for ref in list_input_ports():
        if ref.name == name:
            return ref
    raise EndpointNotFound(name, "input")


def resolve_output(name: str) -> EndpointRef:
    for ref in list_output_ports():
        if ref.name == name:
            return ref
    raise EndpointNotFound(name, "output")

