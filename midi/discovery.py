"""Find which input/output port pairs belong to an LPD8.

Every input port gets a listener, then the universal identity request is
sent on each output in turn. Whichever input answers with the LPD8's
identity within the per-output timeout is a candidate; the pair is only
reported once a second identity request on exactly that pair is answered.
"""
from __future__ import annotations
import queue
import time
from collections.abc import Iterator
from contextlib import ExitStack
from dataclasses import dataclass

from core.logger import AppLogger
from midi import ports
from midi.errors import EndpointNotFound, TransactTimeout
from midi.ports import DevicePortPair
from midi.sysex import (
    IDENTITY_REPLY, IdentityInfo,
    decode_identity, encode_identify_request,
)
from midi.transport import SysExTransport

DEFAULT_IDENTIFY_TIMEOUT = 0.05


@dataclass(frozen=True)
class DiscoveredDevice:
    pair: DevicePortPair
    identity: IdentityInfo


def _drain(replies: queue.Queue) -> None:
    while True:
        try:
            replies.get_nowait()
        except queue.Empty:
            return


def _await_identity(
    replies: queue.Queue, timeout: float, logger: AppLogger,
) -> tuple[str, list[int]] | None:
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return None
        try:
            in_name, message = replies.get(timeout=remaining)
        except queue.Empty:
            return None
        if IDENTITY_REPLY.matches(message):
            return in_name, message
        logger.traffic("RX", in_name, message, "not an LPD8")


def discover(
    transport: SysExTransport,
    timeout: float = DEFAULT_IDENTIFY_TIMEOUT,
    logger: AppLogger | None = None,
) -> Iterator[DiscoveredDevice]:
    """Yield each LPD8 found, in output-port order.

    The generator owns the temporary listeners; they are closed when it is
    exhausted or closed, so it cannot be resumed after that.
    """
    logger = logger or AppLogger()
    replies: queue.Queue[tuple[str, list[int]]] = queue.Queue()
    inputs = ports.list_input_ports()
    outputs = ports.list_output_ports()
    logger.device(f"Scanning {len(outputs)} output(s) against {len(inputs)} input(s)")

    with ExitStack() as stack:
        for ref in inputs:
            def collect(message: list[int], _name: str = ref.name) -> None:
                replies.put((_name, message))
            try:
                stack.enter_context(transport.listen(ref.name, collect))
            except EndpointNotFound as exc:
                logger.device(f"Skipping input: {exc}")

        for out in outputs:
            _drain(replies)
            try:
                transport.send(out.name, encode_identify_request())
            except EndpointNotFound as exc:
                logger.device(f"Skipping output: {exc}")
                continue
            found = _await_identity(replies, timeout, logger)
            if found is None:
                continue
            in_name, _message = found
            pair = DevicePortPair(input_name=in_name, output_name=out.name)
            # A slow reply to the previous output can land in this window
            try:
                message = transport.transact(
                    in_name, out.name, encode_identify_request(),
                    IDENTITY_REPLY.matches, timeout,
                )
            except (EndpointNotFound, TransactTimeout) as exc:
                logger.device(f"Not confirmed: {pair.label}: {exc}")
                continue
            device = DiscoveredDevice(pair=pair, identity=decode_identity(message))
            logger.device(f"LPD8 found: {device.pair.label}")
            yield device


def discover_devices(
    transport: SysExTransport,
    timeout: float = DEFAULT_IDENTIFY_TIMEOUT,
    logger: AppLogger | None = None,
) -> list[DiscoveredDevice]:
    return list(discover(transport, timeout=timeout, logger=logger))
