import os
from unittest.mock import patch

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from fake_rtmidi import FakeLPD8, FakeMidiSystem


@pytest.fixture
def midi_system():
    system = FakeMidiSystem()
    module = system.module()
    with patch("midi.ports.rtmidi", module), patch("midi.transport.rtmidi", module):
        yield system


@pytest.fixture
def lpd8(midi_system):
    return FakeLPD8(midi_system)
