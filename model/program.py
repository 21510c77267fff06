from __future__ import annotations
import copy
from dataclasses import dataclass, field

PAD_COUNT = 8
KNOB_COUNT = 8
PROGRAM_SLOTS = (1, 2, 3, 4)


def _check_byte(name: str, value: int) -> None:
    if not (0 <= value <= 0x7F):
        raise ValueError(f"{name} must be 0-127, got {value}")


@dataclass
class Pad:
    note: int = 0
    program_change: int = 0
    control_change: int = 0
    toggle: bool = False


@dataclass
class Knob:
    control_change: int = 0
    low: int = 0
    high: int = 0


@dataclass
class Program:
    """One of the four configuration slots stored on the LPD8.

    Values are raw device bytes; ``channel`` is stored as-is (0-127), not
    shifted to a 1-based MIDI channel.
    """

    channel: int = 0
    pads: list[Pad] = field(default_factory=lambda: [Pad() for _ in range(PAD_COUNT)])
    knobs: list[Knob] = field(default_factory=lambda: [Knob() for _ in range(KNOB_COUNT)])

    def copy(self) -> Program:
        return copy.deepcopy(self)

    def validate(self) -> None:
        if len(self.pads) != PAD_COUNT:
            raise ValueError(f"Program needs {PAD_COUNT} pads, got {len(self.pads)}")
        if len(self.knobs) != KNOB_COUNT:
            raise ValueError(f"Program needs {KNOB_COUNT} knobs, got {len(self.knobs)}")
        _check_byte("channel", self.channel)
        for i, pad in enumerate(self.pads, start=1):
            _check_byte(f"pad {i} note", pad.note)
            _check_byte(f"pad {i} program change", pad.program_change)
            _check_byte(f"pad {i} control change", pad.control_change)
        for i, knob in enumerate(self.knobs, start=1):
            _check_byte(f"knob {i} control change", knob.control_change)
            _check_byte(f"knob {i} low", knob.low)
            _check_byte(f"knob {i} high", knob.high)


def check_slot(slot: int) -> int:
    if slot not in PROGRAM_SLOTS:
        raise ValueError(f"Program slot must be 1-{len(PROGRAM_SLOTS)}, got {slot}")
    return slot
