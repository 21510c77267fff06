from __future__ import annotations
from PyQt6.QtWidgets import (
    QDialog, QFormLayout, QSpinBox, QCheckBox, QDialogButtonBox,
)
from core.config import AppConfig


def _ms_spin(minimum: int, maximum: int) -> QSpinBox:
    spin = QSpinBox()
    spin.setRange(minimum, maximum)
    spin.setSuffix(" ms")
    return spin


class SettingsDialog(QDialog):
    def __init__(self, config: AppConfig, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self._config = config
        self._build_ui()
        self._load_from_config()

    def _build_ui(self) -> None:
        layout = QFormLayout(self)

        self.transact_timeout_spin = _ms_spin(10, 10000)
        layout.addRow("Reply timeout:", self.transact_timeout_spin)

        self.identify_timeout_spin = _ms_spin(10, 2000)
        layout.addRow("Scan timeout per port:", self.identify_timeout_spin)

        self.push_settle_spin = _ms_spin(0, 1000)
        layout.addRow("Delay after send:", self.push_settle_spin)

        self.fetch_on_select_check = QCheckBox("Fetch all programs when a device is selected")
        layout.addRow(self.fetch_on_select_check)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def _load_from_config(self) -> None:
        self.transact_timeout_spin.setValue(self._config.transact_timeout_ms)
        self.identify_timeout_spin.setValue(self._config.identify_timeout_ms)
        self.push_settle_spin.setValue(self._config.push_settle_ms)
        self.fetch_on_select_check.setChecked(self._config.fetch_on_select)

    def _on_accept(self) -> None:
        self._config.transact_timeout_ms = self.transact_timeout_spin.value()
        self._config.identify_timeout_ms = self.identify_timeout_spin.value()
        self._config.push_settle_ms = self.push_settle_spin.value()
        self._config.fetch_on_select = self.fetch_on_select_check.isChecked()
        self._config.save()
        self.accept()
