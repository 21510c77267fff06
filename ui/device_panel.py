from __future__ import annotations
from PyQt6.QtWidgets import (
    QWidget, QHBoxLayout, QLabel, QPushButton, QComboBox, QGroupBox, QVBoxLayout,
)
from PyQt6.QtCore import pyqtSignal

from core.config import AppConfig
from core.logger import AppLogger
from midi.discovery import DiscoveredDevice, discover_devices
from midi.ports import DevicePortPair
from midi.session import DeviceSession
from ui.workers import SessionWorker


class DevicePanel(QWidget):
    device_selected = pyqtSignal(object)   # DevicePortPair or None
    settings_requested = pyqtSignal()

    def __init__(self, session: DeviceSession, config: AppConfig | None = None,
                 logger: AppLogger | None = None, parent=None) -> None:
        super().__init__(parent)
        self._session = session
        self._config = config or AppConfig()
        self._logger = logger or AppLogger()
        self._scan_worker: SessionWorker | None = None
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        group = QGroupBox("Device")
        row = QHBoxLayout(group)

        self.device_combo = QComboBox()
        self.device_combo.currentIndexChanged.connect(self._on_device_changed)
        row.addWidget(self.device_combo, stretch=1)

        self.scan_btn = QPushButton("Scan")
        self.scan_btn.clicked.connect(self.start_scan)
        row.addWidget(self.scan_btn)

        self.settings_btn = QPushButton("Settings...")
        self.settings_btn.clicked.connect(self.settings_requested)
        row.addWidget(self.settings_btn)

        self.status_label = QLabel("No LPD8 selected")
        row.addWidget(self.status_label)

        layout.addWidget(group)

    def start_scan(self) -> None:
        if self._scan_worker is not None and self._scan_worker.isRunning():
            return
        self.scan_btn.setEnabled(False)
        self.status_label.setText("Scanning...")
        transport = self._session.transport
        timeout = self._config.identify_timeout
        worker = SessionWorker(
            lambda: discover_devices(transport, timeout=timeout, logger=self._logger),
            parent=self,
        )
        self._scan_worker = worker
        worker.succeeded.connect(self.populate)
        worker.failed.connect(self._on_scan_failed)
        worker.finished.connect(lambda: self.scan_btn.setEnabled(True))
        worker.start()

    def populate(self, devices: list[DiscoveredDevice]) -> None:
        """Fill the combo; the last used pair wins, otherwise the first one found."""
        self.device_combo.blockSignals(True)
        self.device_combo.clear()
        select = 0
        for device in devices:
            self.device_combo.addItem(device.pair.label, device.pair)
            if (device.pair.input_name == self._config.midi_in_port
                    and device.pair.output_name == self._config.midi_out_port):
                select = self.device_combo.count() - 1
        if devices:
            self.device_combo.setCurrentIndex(select)
        self.device_combo.blockSignals(False)
        if devices:
            self._on_device_changed(select)
        else:
            self._select(None)

    def _on_scan_failed(self, message: str) -> None:
        self._logger.device(f"Scan failed: {message}")
        self._select(None)

    def _on_device_changed(self, idx: int) -> None:
        if idx < 0:
            return
        self._select(self.device_combo.itemData(idx))

    def _select(self, pair: DevicePortPair | None) -> None:
        self._session.select_device(pair)
        if pair is not None:
            self._config.midi_in_port = pair.input_name
            self._config.midi_out_port = pair.output_name
            self._config.save()
            self.status_label.setText("Connected")
        else:
            self.status_label.setText("No LPD8 found")
        self.device_selected.emit(pair)
