import sys
import pytest
from PyQt6.QtWidgets import QApplication
from core.logger import AppLogger

@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication(sys.argv)


def test_logger_emits_messages(app):
    logger = AppLogger()
    received = []
    logger.message_logged.connect(lambda cat, msg: received.append((cat, msg)))
    logger.log("MIDI", "TX LPD8: F0 7E 00 06 01 F7")
    assert received == [("MIDI", "TX LPD8: F0 7E 00 06 01 F7")]


def test_logger_categories(app, capsys):
    logger = AppLogger()
    received = []
    logger.message_logged.connect(lambda cat, msg: received.append(cat))
    logger.midi("RX: F0 47 7F 75")
    logger.device("Selected: LPD8 / LPD8")
    logger.general("Ready")
    assert received == ["MIDI", "DEVICE", "GENERAL"]
    assert "[DEVICE] Selected: LPD8 / LPD8" in capsys.readouterr().out


def test_logger_traffic_formats_sysex(app):
    logger = AppLogger()
    received = []
    logger.message_logged.connect(lambda cat, msg: received.append((cat, msg)))
    logger.traffic("TX", "LPD8 Out", [0xF0, 0x47, 0x7F, 0x75, 0x64, 0x00, 0x00, 0xF7])
    logger.traffic("RX", "LPD8 In", [0xF0] + [0x00] * 64 + [0xF7], "ignored")
    assert received[0] == ("SYSEX", "TX LPD8 Out: F0 47 7F 75 64 00 00 F7")
    category, text = received[1]
    assert category == "SYSEX"
    assert text.startswith("RX LPD8 In (ignored): F0 00")
    assert text.endswith("... (66 bytes)")
