from __future__ import annotations
import queue
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
import rtmidi

from core.logger import AppLogger
from midi import ports
from midi.errors import EndpointNotFound, TransactTimeout

DEFAULT_TIMEOUT = 0.5
DEFAULT_SETTLE_TIME = 0.02

MessageFilter = Callable[[list[int]], bool]


class SysExTransport:
    """Request/response SysEx exchange over rtmidi.

    Ports are opened per operation and looked up by name every time, since
    rtmidi port indices shift whenever devices come and go.
    """

    def __init__(self, logger: AppLogger | None = None,
                 settle_time: float = DEFAULT_SETTLE_TIME) -> None:
        self._logger = logger or AppLogger()
        self.settle_time = settle_time

    @contextmanager
    def listen(self, in_name: str, on_message: Callable[[list[int]], None]) -> Iterator[None]:
        """Deliver every inbound message on ``in_name`` to ``on_message`` until exit.

        ``on_message`` runs on rtmidi's input thread.
        """
        ref = ports.resolve_input(in_name)
        midi_in = rtmidi.MidiIn()

        def dispatch(event, _data=None) -> None:
            message, _delta = event
            if not message:
                return
            try:
                on_message(list(message))
            except Exception as exc:
                self._logger.midi(f"Error handling RX on {in_name}: {exc}")

        try:
            try:
                midi_in.open_port(ref.index)
            except (rtmidi.InvalidPortError, rtmidi.SystemError) as exc:
                raise EndpointNotFound(in_name, "input") from exc
            midi_in.ignore_types(sysex=False)
            midi_in.set_callback(dispatch)
            yield
        finally:
            midi_in.cancel_callback()
            midi_in.close_port()
            midi_in.delete()

    def send(self, out_name: str, message: Sequence[int]) -> None:
        ref = ports.resolve_output(out_name)
        midi_out = rtmidi.MidiOut()
        try:
            try:
                midi_out.open_port(ref.index)
            except (rtmidi.InvalidPortError, rtmidi.SystemError) as exc:
                raise EndpointNotFound(out_name, "output") from exc
            midi_out.send_message(list(message))
            self._logger.traffic("TX", out_name, message)
        finally:
            midi_out.close_port()
            midi_out.delete()

    def push(self, out_name: str, request: Sequence[int]) -> None:
        """Send a one-way command, then give the device time to digest it."""
        self.send(out_name, request)
        time.sleep(self.settle_time)

    def transact(
        self,
        in_name: str,
        out_name: str,
        request: Sequence[int],
        match: MessageFilter,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> list[int]:
        """Send ``request`` and return the first inbound message accepted by ``match``.

        The listener is installed before the request goes out so a fast reply
        is never missed. Raises TransactTimeout when nothing matches in time.
        Callers must not run two transactions on the same port pair at once:
        replies carry no transaction id, only content.
        """
        handoff: queue.Queue[list[int]] = queue.Queue(maxsize=1)

        def on_message(message: list[int]) -> None:
            if not match(message):
                self._logger.traffic("RX", in_name, message, "ignored")
                return
            self._logger.traffic("RX", in_name, message)
            try:
                handoff.put_nowait(message)
            except queue.Full:
                pass  # first match wins

        with self.listen(in_name, on_message):
            self.send(out_name, request)
            try:
                return handoff.get(timeout=timeout)
            except queue.Empty:
                raise TransactTimeout(timeout) from None
