from __future__ import annotations
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QFormLayout,
    QGroupBox, QPushButton, QSpinBox, QLabel,
)
from PyQt6.QtCore import pyqtSignal

from midi.session import DeviceSession
from model.program import KNOB_COUNT, PAD_COUNT, Program


def _byte_spin() -> QSpinBox:
    spin = QSpinBox()
    spin.setRange(0, 127)
    return spin


class PadEditor(QGroupBox):
    def __init__(self, index: int, parent=None) -> None:
        super().__init__(f"PAD {index + 1}", parent)
        self.index = index
        layout = QFormLayout(self)
        self.note_spin = _byte_spin()
        self.program_change_spin = _byte_spin()
        self.control_change_spin = _byte_spin()
        self.toggle_btn = QPushButton("Momentary")
        self.toggle_btn.setCheckable(True)
        self.toggle_btn.toggled.connect(self._update_toggle_label)
        layout.addRow("Note:", self.note_spin)
        layout.addRow("PC:", self.program_change_spin)
        layout.addRow("CC:", self.control_change_spin)
        layout.addRow(self.toggle_btn)

    def _update_toggle_label(self, checked: bool) -> None:
        self.toggle_btn.setText("Toggle" if checked else "Momentary")


class KnobEditor(QGroupBox):
    def __init__(self, index: int, parent=None) -> None:
        super().__init__(f"K{index + 1}", parent)
        self.index = index
        layout = QFormLayout(self)
        self.control_change_spin = _byte_spin()
        self.low_spin = _byte_spin()
        self.high_spin = _byte_spin()
        layout.addRow("CC:", self.control_change_spin)
        layout.addRow("Low:", self.low_spin)
        layout.addRow("High:", self.high_spin)


class ProgramEditor(QWidget):
    """Editor for one device slot. Edits go straight into the session's copy."""

    fetch_requested = pyqtSignal(int)
    push_requested = pyqtSignal(int)

    def __init__(self, session: DeviceSession, slot: int, parent=None) -> None:
        super().__init__(parent)
        self._session = session
        self.slot = slot
        self._loading = False
        self._build_ui()
        self.load_program(session.program(slot))

    def _build_ui(self) -> None:
        layout = QHBoxLayout(self)

        side = QVBoxLayout()
        self.fetch_btn = QPushButton("Fetch")
        self.fetch_btn.clicked.connect(lambda: self.fetch_requested.emit(self.slot))
        side.addWidget(self.fetch_btn)
        self.push_btn = QPushButton("Push")
        self.push_btn.clicked.connect(lambda: self.push_requested.emit(self.slot))
        side.addWidget(self.push_btn)
        side.addWidget(QLabel("Channel:"))
        self.channel_spin = _byte_spin()
        self.channel_spin.valueChanged.connect(self._on_channel_changed)
        side.addWidget(self.channel_spin)
        self.dirty_label = QLabel("")
        side.addWidget(self.dirty_label)
        side.addStretch()
        layout.addLayout(side)

        pad_grid = QGridLayout()
        self.pad_editors: list[PadEditor] = []
        for i in range(PAD_COUNT):
            editor = PadEditor(i)
            editor.note_spin.valueChanged.connect(
                lambda v, i=i: self._edit_pad(i, "note", v))
            editor.program_change_spin.valueChanged.connect(
                lambda v, i=i: self._edit_pad(i, "program_change", v))
            editor.control_change_spin.valueChanged.connect(
                lambda v, i=i: self._edit_pad(i, "control_change", v))
            editor.toggle_btn.toggled.connect(
                lambda checked, i=i: self._edit_pad(i, "toggle", checked))
            # Pads 1-4 sit on the bottom row of the hardware
            pad_grid.addWidget(editor, 1 - i // 4, i % 4)
            self.pad_editors.append(editor)
        layout.addLayout(pad_grid, stretch=1)

        knob_grid = QGridLayout()
        self.knob_editors: list[KnobEditor] = []
        for i in range(KNOB_COUNT):
            editor = KnobEditor(i)
            editor.control_change_spin.valueChanged.connect(
                lambda v, i=i: self._edit_knob(i, "control_change", v))
            editor.low_spin.valueChanged.connect(
                lambda v, i=i: self._edit_knob(i, "low", v))
            editor.high_spin.valueChanged.connect(
                lambda v, i=i: self._edit_knob(i, "high", v))
            knob_grid.addWidget(editor, i // 4, i % 4)
            self.knob_editors.append(editor)
        layout.addLayout(knob_grid, stretch=1)

    def set_device_enabled(self, enabled: bool) -> None:
        self.fetch_btn.setEnabled(enabled)
        self.push_btn.setEnabled(enabled)

    def load_program(self, program: Program) -> None:
        """Show ``program`` without writing it back to the session."""
        self._loading = True
        try:
            self.channel_spin.setValue(program.channel)
            for editor, pad in zip(self.pad_editors, program.pads):
                editor.note_spin.setValue(pad.note)
                editor.program_change_spin.setValue(pad.program_change)
                editor.control_change_spin.setValue(pad.control_change)
                editor.toggle_btn.setChecked(pad.toggle)
            for editor, knob in zip(self.knob_editors, program.knobs):
                editor.control_change_spin.setValue(knob.control_change)
                editor.low_spin.setValue(knob.low)
                editor.high_spin.setValue(knob.high)
        finally:
            self._loading = False
        self.refresh_dirty()

    def refresh_dirty(self) -> None:
        self.dirty_label.setText("Not pushed" if self._session.is_dirty(self.slot) else "")

    def _on_channel_changed(self, value: int) -> None:
        if self._loading:
            return
        with self._session.edit(self.slot) as program:
            program.channel = value
        self.refresh_dirty()

    def _edit_pad(self, index: int, field: str, value) -> None:
        if self._loading:
            return
        with self._session.edit(self.slot) as program:
            setattr(program.pads[index], field, value)
        self.refresh_dirty()

    def _edit_knob(self, index: int, field: str, value: int) -> None:
        if self._loading:
            return
        with self._session.edit(self.slot) as program:
            setattr(program.knobs[index], field, value)
        self.refresh_dirty()
