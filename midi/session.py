from __future__ import annotations
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from core.logger import AppLogger
from midi.errors import MalformedResponse, MidiError, NoDeviceSelected, TransactFailure
from midi.ports import DevicePortPair
from midi.sysex import (
    ACTIVE_REPLY, PROGRAM_REPLY,
    decode_active, decode_program,
    encode_get_active, encode_program_request, encode_program_upload, encode_set_active,
)
from midi.transport import DEFAULT_TIMEOUT, SysExTransport
from model.program import PROGRAM_SLOTS, Program, check_slot


class ProgramSlot:
    """In-memory copy of one device slot, guarded by its own lock."""

    def __init__(self, slot: int) -> None:
        self.slot = slot
        self.lock = threading.Lock()
        self.program = Program()
        self.dirty = False


class DeviceSession:
    """The selected LPD8 plus the last known contents of its four slots.

    Safe to call from several threads. Each slot has its own lock, and every
    request/response cycle holds a per-port-pair lock so replies from
    concurrent requests can't be mistaken for each other.
    """

    def __init__(
        self,
        transport: SysExTransport | None = None,
        logger: AppLogger | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._logger = logger or AppLogger()
        self._transport = transport or SysExTransport(logger=self._logger)
        self.timeout = timeout
        self._pair: DevicePortPair | None = None
        self._pair_lock = threading.Lock()
        self._slots = {slot: ProgramSlot(slot) for slot in PROGRAM_SLOTS}
        self._pair_transaction_locks: dict[DevicePortPair, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    @property
    def transport(self) -> SysExTransport:
        return self._transport

    @property
    def active_pair(self) -> DevicePortPair | None:
        with self._pair_lock:
            return self._pair

    def select_device(self, pair: DevicePortPair | None) -> None:
        with self._pair_lock:
            self._pair = pair
        self._logger.device(f"Selected: {pair.label}" if pair else "No device selected")

    # -- in-memory slots --

    def _cell(self, slot: int) -> ProgramSlot:
        return self._slots[check_slot(slot)]

    def program(self, slot: int) -> Program:
        cell = self._cell(slot)
        with cell.lock:
            return cell.program.copy()

    @contextmanager
    def edit(self, slot: int) -> Iterator[Program]:
        """Mutate a slot in place; the slot is marked dirty when the block completes."""
        cell = self._cell(slot)
        with cell.lock:
            yield cell.program
            cell.dirty = True

    def is_dirty(self, slot: int) -> bool:
        cell = self._cell(slot)
        with cell.lock:
            return cell.dirty

    # -- device operations --

    def _require_pair(self, slot: int | None) -> DevicePortPair:
        pair = self.active_pair
        if pair is None:
            raise TransactFailure("No LPD8 selected", slot) from NoDeviceSelected()
        return pair

    @contextmanager
    def _exclusive(self, pair: DevicePortPair) -> Iterator[None]:
        with self._registry_lock:
            lock = self._pair_transaction_locks.setdefault(pair, threading.Lock())
        with lock:
            yield

    def fetch(self, slot: int) -> Program:
        """Download a slot from the device and store it.

        On failure the in-memory slot is left as it was.
        """
        cell = self._cell(slot)
        pair = self._require_pair(slot)
        try:
            with self._exclusive(pair):
                reply = self._transport.transact(
                    pair.input_name, pair.output_name,
                    encode_program_request(slot), PROGRAM_REPLY.matches, self.timeout,
                )
            program = decode_program(reply)
        except MidiError as exc:
            self._logger.device(f"Fetch program {slot} failed: {exc}")
            raise TransactFailure(f"Could not fetch program {slot}: {exc}", slot) from exc
        with cell.lock:
            cell.program = program
            cell.dirty = False
        self._logger.device(f"Fetched program {slot}")
        return program.copy()

    def fetch_all(self) -> dict[int, Program | TransactFailure]:
        results: dict[int, Program | TransactFailure] = {}
        for slot in PROGRAM_SLOTS:
            try:
                results[slot] = self.fetch(slot)
            except TransactFailure as exc:
                results[slot] = exc
        return results

    def push(self, slot: int) -> None:
        """Upload the in-memory slot. The device sends no acknowledgement."""
        cell = self._cell(slot)
        pair = self._require_pair(slot)
        program = self.program(slot)
        try:
            program.validate()
        except ValueError as exc:
            raise TransactFailure(f"Program {slot} is invalid: {exc}", slot) from exc
        try:
            with self._exclusive(pair):
                self._transport.push(pair.output_name, encode_program_upload(slot, program))
        except MidiError as exc:
            self._logger.device(f"Push program {slot} failed: {exc}")
            raise TransactFailure(f"Could not push program {slot}: {exc}", slot) from exc
        with cell.lock:
            if cell.program == program:
                cell.dirty = False
        self._logger.device(f"Pushed program {slot}")

    def activate(self, slot: int) -> None:
        """Make ``slot`` the device's active program; not read back."""
        check_slot(slot)
        pair = self._require_pair(slot)
        try:
            with self._exclusive(pair):
                self._transport.push(pair.output_name, encode_set_active(slot))
        except MidiError as exc:
            raise TransactFailure(f"Could not activate program {slot}: {exc}", slot) from exc

    def current_active(self) -> int:
        pair = self._require_pair(None)
        try:
            with self._exclusive(pair):
                reply = self._transport.transact(
                    pair.input_name, pair.output_name,
                    encode_get_active(), ACTIVE_REPLY.matches, self.timeout,
                )
            slot = decode_active(reply)
            if slot not in PROGRAM_SLOTS:
                raise MalformedResponse(f"Device reported active program {slot}")
        except MidiError as exc:
            self._logger.device(f"Reading active program failed: {exc}")
            raise TransactFailure(f"Could not read active program: {exc}") from exc
        return slot
