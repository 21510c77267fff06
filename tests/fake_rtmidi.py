"""In-memory stand-in for python-rtmidi, plus a scripted LPD8 that answers on it."""
import threading
import types

from midi.sysex import decode_program, encode_program_upload
from model.program import PROGRAM_SLOTS, Program

LPD8_IDENTITY = [
    0xF0, 0x7E, 0x00, 0x06, 0x02, 0x47, 0x75, 0x00,
    0x19, 0x00, 0x00, 0x00, 0x66, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0xF7,
]


class FakeInvalidPortError(ValueError):
    pass


class FakeSystemError(RuntimeError):
    pass


class FakeMidiSystem:
    def __init__(self):
        self.inputs = []
        self.outputs = []
        self.responders = {}     # output name -> fn(message) -> [(input name, reply)]
        self.reply_delays = {}   # output name -> seconds before its replies arrive
        self.sent = []           # (output name, message)
        self._listeners = []
        self._lock = threading.Lock()

    def module(self):
        system = self
        return types.SimpleNamespace(
            MidiIn=lambda *a, **kw: FakeMidiIn(system),
            MidiOut=lambda *a, **kw: FakeMidiOut(system),
            InvalidPortError=FakeInvalidPortError,
            SystemError=FakeSystemError,
        )

    @property
    def open_listener_count(self):
        with self._lock:
            return len(self._listeners)

    def register(self, midi_in):
        with self._lock:
            self._listeners.append(midi_in)

    def unregister(self, midi_in):
        with self._lock:
            if midi_in in self._listeners:
                self._listeners.remove(midi_in)

    def deliver(self, in_name, message):
        """Hand ``message`` to every listener on ``in_name`` from a separate thread."""
        with self._lock:
            targets = [m for m in self._listeners if m.port_name == in_name]
        threads = [threading.Thread(target=m.receive, args=(list(message),)) for m in targets]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    def handle_send(self, out_name, message):
        self.sent.append((out_name, list(message)))
        responder = self.responders.get(out_name)
        if responder is None:
            return
        delay = self.reply_delays.get(out_name, 0)
        for in_name, reply in responder(list(message)):
            if delay:
                timer = threading.Timer(delay, self.deliver, args=(in_name, reply))
                timer.daemon = True
                timer.start()
            else:
                self.deliver(in_name, reply)


class FakeMidiIn:
    def __init__(self, system):
        self._system = system
        self.port_name = None
        self._callback = None
        self._ignore_sysex = True

    def get_ports(self):
        return list(self._system.inputs)

    def open_port(self, index=0, name=None):
        if not 0 <= index < len(self._system.inputs):
            raise FakeInvalidPortError(f"invalid port {index}")
        self.port_name = self._system.inputs[index]
        self._system.register(self)

    def ignore_types(self, sysex=True, timing=True, active_sense=True):
        self._ignore_sysex = sysex

    def set_callback(self, callback, data=None):
        self._callback = callback

    def cancel_callback(self):
        self._callback = None

    def receive(self, message):
        callback = self._callback
        if callback is None:
            return
        if message and message[0] == 0xF0 and self._ignore_sysex:
            return
        callback((message, 0.0), None)

    def close_port(self):
        self._system.unregister(self)
        self.port_name = None

    def delete(self):
        pass


class FakeMidiOut:
    def __init__(self, system):
        self._system = system
        self.port_name = None

    def get_ports(self):
        return list(self._system.outputs)

    def open_port(self, index=0, name=None):
        if not 0 <= index < len(self._system.outputs):
            raise FakeInvalidPortError(f"invalid port {index}")
        self.port_name = self._system.outputs[index]

    def send_message(self, message):
        if self.port_name is None:
            raise FakeSystemError("port not open")
        self._system.handle_send(self.port_name, message)

    def close_port(self):
        self.port_name = None

    def delete(self):
        pass


class FakeLPD8:
    """Answers identity, program and active-program requests like the hardware."""

    def __init__(self, system, in_name="LPD8 MIDI In", out_name="LPD8 MIDI Out"):
        self.in_name = in_name
        self.out_name = out_name
        self.programs = {slot: Program() for slot in PROGRAM_SLOTS}
        self.active = 1
        self.silent = False
        self.ignored_commands = set()
        self.identity = list(LPD8_IDENTITY)
        system.inputs.append(in_name)
        system.outputs.append(out_name)
        system.responders[out_name] = self.respond

    def respond(self, message):
        if self.silent:
            return []
        if message == [0xF0, 0x7E, 0x00, 0x06, 0x01, 0xF7]:
            return [(self.in_name, self.identity)]
        command = message[4]
        if command in self.ignored_commands:
            return []
        if command == 0x63:
            reply = encode_program_upload(message[7], self.programs[message[7]])
            reply[4] = 0x63
            return [(self.in_name, reply)]
        if command == 0x64:
            return [(self.in_name, [0xF0, 0x47, 0x7F, 0x75, 0x64, 0x00, 0x01, self.active, 0xF7])]
        if command == 0x62:
            self.active = message[7]
        elif command == 0x61:
            stored = list(message)
            stored[4] = 0x63
            self.programs[message[7]] = decode_program(stored)
        return []


