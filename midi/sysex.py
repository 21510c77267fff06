from __future__ import annotations
from collections.abc import Sequence
from dataclasses import dataclass

from midi.errors import MalformedResponse
from model.program import KNOB_COUNT, PAD_COUNT, Knob, Pad, Program, check_slot

SYSEX_START = 0xF0
SYSEX_END = 0xF7

AKAI_ID = 0x47
DEVICE_ID = 0x7F
MODEL_ID = 0x75  # LPD8 (mk1)

CMD_PROGRAM_UPLOAD = 0x61
CMD_SET_ACTIVE = 0x62
CMD_PROGRAM_REQUEST = 0x63
CMD_GET_ACTIVE = 0x64

_HEADER = [SYSEX_START, AKAI_ID, DEVICE_ID, MODEL_ID]

PROGRAM_DATA_LEN = 0x3A  # 58: slot, channel, 32 pad bytes, 24 knob bytes
PAD_BYTES = 4
KNOB_BYTES = 3

# Offsets inside a get-program reply (and the upload, which shares the layout)
SLOT_OFFSET = 7
CHANNEL_OFFSET = 8
PADS_OFFSET = 9
KNOBS_OFFSET = PADS_OFFSET + PAD_COUNT * PAD_BYTES      # 41
PROGRAM_END = KNOBS_OFFSET + KNOB_COUNT * KNOB_BYTES    # 65
PROGRAM_MESSAGE_LEN = PROGRAM_END + 1                   # 66, F7 at offset 65

ACTIVE_MESSAGE_LEN = 9
ACTIVE_MIN_LEN = 8

IDENTIFY_REQUEST = [0xF0, 0x7E, 0x00, 0x06, 0x01, 0xF7]
IDENTITY_MESSAGE_LEN = 35


@dataclass(frozen=True)
class ResponseTemplate:
    """Expected reply shape: exact length plus byte ranges that must match.

    Ranges are half-open ``(start, stop)`` pairs into ``expected``.
    """

    expected: bytes
    ranges: tuple[tuple[int, int], ...]

    def matches(self, message: Sequence[int]) -> bool:
        if len(message) != len(self.expected):
            return False
        for start, stop in self.ranges:
            if list(message[start:stop]) != list(self.expected[start:stop]):
                return False
        return True


IDENTITY_REPLY = ResponseTemplate(
    expected=bytes([
        0xF0, 0x7E, 0x00, 0x06, 0x02, 0x47, 0x75, 0x00,
        0x19, 0x00, 0x00, 0x00, 0x66, 0x7F, 0x00, 0x00,
        0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0x00, 0x00, 0xF7,
    ]),
    # Offset 2 (device id) and 13 vary between units and firmware revisions.
    ranges=((0, 2), (3, 13), (14, 20)),
)

PROGRAM_REPLY = ResponseTemplate(
    expected=bytes(
        [*_HEADER, CMD_PROGRAM_REQUEST, 0x00, PROGRAM_DATA_LEN]
        + [0x00] * (PROGRAM_MESSAGE_LEN - 8) + [SYSEX_END]
    ),
    ranges=((0, 7),),
)

ACTIVE_REPLY = ResponseTemplate(
    expected=bytes([*_HEADER, CMD_GET_ACTIVE, 0x00, 0x01, 0x01, SYSEX_END]),
    ranges=((0, 7),),
)


@dataclass(frozen=True)
class IdentityInfo:
    """Raw reply to the universal identity request; only compared, never interpreted."""

    raw: bytes

    @property
    def manufacturer(self) -> int:
        return self.raw[5]

    @property
    def family(self) -> bytes:
        return self.raw[6:8]

    @property
    def model(self) -> bytes:
        return self.raw[8:10]

    @property
    def version(self) -> bytes:
        return self.raw[10:14]


def format_message(message: Sequence[int], limit: int | None = None) -> str:
    shown = list(message if limit is None else message[:limit])
    text = " ".join(f"{b:02X}" for b in shown)
    if limit is not None and len(message) > limit:
        text += f" ... ({len(message)} bytes)"
    return text


def encode_identify_request() -> list[int]:
    return list(IDENTIFY_REQUEST)


def encode_program_request(slot: int) -> list[int]:
    return [*_HEADER, CMD_PROGRAM_REQUEST, 0x00, 0x01, check_slot(slot), SYSEX_END]


def encode_program_upload(slot: int, program: Program) -> list[int]:
    """Upload message for one slot.

    Fields are written as-is; range checking is Program.validate()'s job.
    """
    message = [*_HEADER, CMD_PROGRAM_UPLOAD, 0x00, PROGRAM_DATA_LEN,
               check_slot(slot), program.channel]
    for pad in program.pads:
        message.extend([pad.note, pad.program_change, pad.control_change,
                        1 if pad.toggle else 0])
    for knob in program.knobs:
        message.extend([knob.control_change, knob.low, knob.high])
    message.append(SYSEX_END)
    return message


def encode_set_active(slot: int) -> list[int]:
    return [*_HEADER, CMD_SET_ACTIVE, 0x00, 0x01, check_slot(slot), SYSEX_END]


def encode_get_active() -> list[int]:
    return [*_HEADER, CMD_GET_ACTIVE, 0x00, 0x00, SYSEX_END]


def _check_header(message: Sequence[int], template: ResponseTemplate, what: str) -> None:
    for start, stop in template.ranges:
        if list(message[start:stop]) != list(template.expected[start:stop]):
            raise MalformedResponse(
                f"Unexpected {what} header: {format_message(message, 8)}"
            )


def decode_program(message: Sequence[int]) -> Program:
    # Format: F0 47 7F 75 63 00 3A <slot> <channel> [pads] [knobs] F7
    if len(message) != PROGRAM_MESSAGE_LEN:
        raise MalformedResponse(
            f"Program reply must be {PROGRAM_MESSAGE_LEN} bytes, got {len(message)}"
        )
    _check_header(message, PROGRAM_REPLY, "program reply")
    pads = []
    for offset in range(PADS_OFFSET, KNOBS_OFFSET, PAD_BYTES):
        note, pc, cc, toggle = message[offset:offset + PAD_BYTES]
        pads.append(Pad(note=note, program_change=pc, control_change=cc,
                        toggle=toggle == 1))
    knobs = []
    for offset in range(KNOBS_OFFSET, PROGRAM_END, KNOB_BYTES):
        cc, low, high = message[offset:offset + KNOB_BYTES]
        knobs.append(Knob(control_change=cc, low=low, high=high))
    return Program(channel=message[CHANNEL_OFFSET], pads=pads, knobs=knobs)


def decode_active(message: Sequence[int]) -> int:
    # Format: F0 47 7F 75 64 00 01 <slot> F7
    if not (ACTIVE_MIN_LEN <= len(message) <= ACTIVE_MESSAGE_LEN):
        raise MalformedResponse(
            f"Active-program reply must be {ACTIVE_MESSAGE_LEN} bytes, got {len(message)}"
        )
    _check_header(message, ACTIVE_REPLY, "active-program reply")
    return message[SLOT_OFFSET]


def decode_identity(message: Sequence[int]) -> IdentityInfo:
    if len(message) != IDENTITY_MESSAGE_LEN:
        raise MalformedResponse(
            f"Identity reply must be {IDENTITY_MESSAGE_LEN} bytes, got {len(message)}"
        )
    return IdentityInfo(raw=bytes(message))
