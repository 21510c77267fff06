from __future__ import annotations
import json
from pathlib import Path

_DEFAULTS = {
    "midi_in_port": None,
    "midi_out_port": None,
    "transact_timeout_ms": 500,
    "identify_timeout_ms": 50,
    "push_settle_ms": 20,
    "fetch_on_select": True,
}


class AppConfig:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "lpd8config" / "config.json"
        self.midi_in_port: str | None = _DEFAULTS["midi_in_port"]
        self.midi_out_port: str | None = _DEFAULTS["midi_out_port"]
        self.transact_timeout_ms: int = _DEFAULTS["transact_timeout_ms"]
        self.identify_timeout_ms: int = _DEFAULTS["identify_timeout_ms"]
        self.push_settle_ms: int = _DEFAULTS["push_settle_ms"]
        self.fetch_on_select: bool = _DEFAULTS["fetch_on_select"]
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text())
            for key in _DEFAULTS:
                if key in data:
                    setattr(self, key, data[key])
        except (json.JSONDecodeError, OSError):
            pass

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = {key: getattr(self, key) for key in _DEFAULTS}
        self._path.write_text(json.dumps(data, indent=2))

    # Seconds, as the MIDI layer takes them

    @property
    def transact_timeout(self) -> float:
        return self.transact_timeout_ms / 1000.0

    @property
    def identify_timeout(self) -> float:
        return self.identify_timeout_ms / 1000.0

    @property
    def push_settle_time(self) -> float:
        return self.push_settle_ms / 1000.0
