import sys
import pytest
from PyQt6.QtWidgets import QApplication
from core.config import AppConfig
from fake_rtmidi import LPD8_IDENTITY, FakeLPD8
from midi.discovery import DiscoveredDevice
from midi.ports import DevicePortPair
from midi.session import DeviceSession
from midi.sysex import IdentityInfo
from midi.transport import SysExTransport
from ui.device_panel import DevicePanel

@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication(sys.argv)

@pytest.fixture
def config(tmp_path):
    return AppConfig(path=tmp_path / "config.json")

@pytest.fixture
def session():
    return DeviceSession(transport=SysExTransport(settle_time=0))

def _device(name):
    return DiscoveredDevice(
        pair=DevicePortPair(f"{name} In", f"{name} Out"),
        identity=IdentityInfo(raw=bytes(LPD8_IDENTITY)),
    )

def test_populate_selects_first_device(app, session, config):
    panel = DevicePanel(session, config=config)
    selected = []
    panel.device_selected.connect(selected.append)
    panel.populate([_device("A"), _device("B")])
    assert panel.device_combo.count() == 2
    assert session.active_pair == DevicePortPair("A In", "A Out")
    assert selected == [DevicePortPair("A In", "A Out")]
    assert config.midi_out_port == "A Out"

def test_populate_prefers_last_used_pair(app, session, config):
    config.midi_in_port = "B In"
    config.midi_out_port = "B Out"
    panel = DevicePanel(session, config=config)
    panel.populate([_device("A"), _device("B")])
    assert panel.device_combo.currentIndex() == 1
    assert session.active_pair == DevicePortPair("B In", "B Out")

def test_populate_empty_clears_selection(app, session, config):
    session.select_device(DevicePortPair("x", "y"))
    panel = DevicePanel(session, config=config)
    selected = []
    panel.device_selected.connect(selected.append)
    panel.populate([])
    assert session.active_pair is None
    assert selected == [None]
    assert panel.status_label.text() == "No LPD8 found"

def test_choosing_another_device(app, session, config):
    panel = DevicePanel(session, config=config)
    panel.populate([_device("A"), _device("B")])
    panel.device_combo.setCurrentIndex(1)
    assert session.active_pair == DevicePortPair("B In", "B Out")
    assert AppConfig(path=config._path).midi_in_port == "B In"

def test_scan_finds_device(app, qtbot, midi_system, session, config):
    FakeLPD8(midi_system, in_name="LPD8 In", out_name="LPD8 Out")
    panel = DevicePanel(session, config=config)
    panel.start_scan()
    qtbot.waitUntil(lambda: panel.device_combo.count() == 1, timeout=3000)
    qtbot.waitUntil(lambda: panel.scan_btn.isEnabled(), timeout=3000)
    assert session.active_pair == DevicePortPair("LPD8 In", "LPD8 Out")
