from __future__ import annotations
from collections.abc import Callable
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QSplitter, QTabWidget,
)
from PyQt6.QtCore import Qt

from core.config import AppConfig
from core.logger import AppLogger
from midi.errors import TransactFailure
from midi.ports import DevicePortPair
from midi.session import DeviceSession
from midi.transport import SysExTransport
from model.program import PROGRAM_SLOTS, Program
from ui.device_panel import DevicePanel
from ui.log_panel import LogPanel
from ui.program_editor import ProgramEditor
from ui.settings_dialog import SettingsDialog
from ui.workers import SessionWorker


class MainWindow(QMainWindow):
    def __init__(self, config: AppConfig | None = None) -> None:
        super().__init__()
        self.setWindowTitle("LPD8 Config")
        self.resize(1100, 800)
        self._config = config or AppConfig()
        self._logger = AppLogger()
        self._session = DeviceSession(
            transport=SysExTransport(logger=self._logger,
                                     settle_time=self._config.push_settle_time),
            logger=self._logger,
            timeout=self._config.transact_timeout,
        )
        self._workers: set[SessionWorker] = set()
        self._syncing_tab = False
        self._build_ui()
        self._connect_signals()
        self._set_device_enabled(False)

    @property
    def session(self) -> DeviceSession:
        return self._session

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        self._device_panel = DevicePanel(self._session, config=self._config, logger=self._logger)
        layout.addWidget(self._device_panel)

        self._tabs = QTabWidget()
        self._editors: dict[int, ProgramEditor] = {}
        for slot in PROGRAM_SLOTS:
            editor = ProgramEditor(self._session, slot)
            self._editors[slot] = editor
            self._tabs.addTab(editor, f"PROG {slot}")

        self._log_panel = LogPanel()

        v_splitter = QSplitter(Qt.Orientation.Vertical)
        v_splitter.addWidget(self._tabs)
        v_splitter.addWidget(self._log_panel)
        v_splitter.setSizes([600, 180])
        layout.addWidget(v_splitter, stretch=1)

    def _connect_signals(self) -> None:
        self._logger.message_logged.connect(self._log_panel.append_message)
        self._device_panel.device_selected.connect(self._on_device_selected)
        self._device_panel.settings_requested.connect(self.open_settings)
        self._tabs.currentChanged.connect(self._on_tab_changed)
        for editor in self._editors.values():
            editor.fetch_requested.connect(self._on_fetch)
            editor.push_requested.connect(self._on_push)

    def start_scan(self) -> None:
        self._device_panel.start_scan()

    def _run(self, fn: Callable[[], object], on_success: Callable[[object], None]) -> None:
        worker = SessionWorker(fn, parent=self)
        self._workers.add(worker)
        worker.succeeded.connect(on_success)
        worker.failed.connect(self._on_failure)
        worker.finished.connect(lambda: self._workers.discard(worker))
        worker.start()

    def _on_failure(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)

    def _set_device_enabled(self, enabled: bool) -> None:
        for editor in self._editors.values():
            editor.set_device_enabled(enabled)

    def _on_device_selected(self, pair: DevicePortPair | None) -> None:
        self._set_device_enabled(pair is not None)
        if pair is None or not self._config.fetch_on_select:
            return
        session = self._session

        def load_device() -> tuple[dict[int, Program | TransactFailure], int | TransactFailure]:
            programs = session.fetch_all()
            try:
                active = session.current_active()
            except TransactFailure as exc:
                return programs, exc
            return programs, active

        self._run(load_device, self._on_device_loaded)

    def _on_device_loaded(self, result: object) -> None:
        programs, active = result
        failed = 0
        for slot, outcome in programs.items():
            if isinstance(outcome, Program):
                self._editors[slot].load_program(outcome)
            else:
                failed += 1
        if failed:
            self.statusBar().showMessage(f"{failed} of {len(programs)} programs failed to load", 5000)
        if isinstance(active, TransactFailure):
            self.statusBar().showMessage(str(active), 5000)
            return
        self.show_slot(active)

    def show_slot(self, slot: int) -> None:
        """Switch tabs without sending a set-active command back to the device."""
        self._syncing_tab = True
        try:
            self._tabs.setCurrentIndex(PROGRAM_SLOTS.index(slot))
        finally:
            self._syncing_tab = False

    def _on_tab_changed(self, index: int) -> None:
        if self._syncing_tab or index < 0 or self._session.active_pair is None:
            return
        slot = PROGRAM_SLOTS[index]
        self._run(lambda: self._session.activate(slot), lambda _: None)

    def _on_fetch(self, slot: int) -> None:
        self._run(lambda: self._session.fetch(slot),
                  lambda program: self._editors[slot].load_program(program))

    def _on_push(self, slot: int) -> None:
        def pushed(_result: object) -> None:
            self._editors[slot].refresh_dirty()
            self.statusBar().showMessage(f"Program {slot} sent to device", 3000)

        self._run(lambda: self._session.push(slot), pushed)

    def open_settings(self) -> None:
        dlg = SettingsDialog(self._config, parent=self)
        if dlg.exec():
            self._session.timeout = self._config.transact_timeout
            self._session.transport.settle_time = self._config.push_settle_time
