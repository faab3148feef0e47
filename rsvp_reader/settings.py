"""Persisted reader preferences."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .timing import (
    DEFAULT_WPM,
    MAX_FREQUENCY_DELAY_FACTOR,
    MAX_LENGTH_DELAY_FACTOR,
    TimingSettings,
    clamp_wpm,
)

LOGGER = logging.getLogger(__name__)

SETTINGS_FILENAME = "settings.json"

MIN_FONT_SIZE = 1.5
MAX_FONT_SIZE = 5.0
DEFAULT_FONT_SIZE = 3.0


def default_state_dir() -> Path:
    return Path(os.getenv("RSVP_READER_HOME", Path.home() / ".cache" / "rsvp_reader"))


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


@dataclass
class ReaderSettings:
    """Options that control playback speed, timing extras and display."""

    wpm: int = DEFAULT_WPM
    length_delay_enabled: bool = False
    length_delay_factor: float = 0.1
    frequency_delay_enabled: bool = False
    frequency_delay_factor: float = 0.3
    font_size: float = DEFAULT_FONT_SIZE
    wordlist_path: Optional[str] = None

    def __post_init__(self) -> None:
        if clamp_wpm(self.wpm) != self.wpm:
            raise ValueError(f"wpm must be a multiple of 25 within [100, 1000], got {self.wpm}")
        if not MIN_FONT_SIZE <= self.font_size <= MAX_FONT_SIZE:
            raise ValueError(f"font_size must be within [{MIN_FONT_SIZE}, {MAX_FONT_SIZE}]")
        # Raises ValueError for out-of-range factors.
        self.timing()

    def timing(self) -> TimingSettings:
        return TimingSettings(
            length_delay_enabled=self.length_delay_enabled,
            length_delay_factor=self.length_delay_factor,
            frequency_delay_enabled=self.frequency_delay_enabled,
            frequency_delay_factor=self.frequency_delay_factor,
        )

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ReaderSettings":
        """Build settings from loosely typed data, clamping values into range."""

        defaults = cls()
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in raw.items() if key in known and value is not None}

        try:
            wpm = clamp_wpm(float(values.get("wpm", defaults.wpm)))
            length_factor = _clamp(
                float(values.get("length_delay_factor", defaults.length_delay_factor)),
                0.0,
                MAX_LENGTH_DELAY_FACTOR,
            )
            frequency_factor = _clamp(
                float(values.get("frequency_delay_factor", defaults.frequency_delay_factor)),
                0.0,
                MAX_FREQUENCY_DELAY_FACTOR,
            )
            font_size = _clamp(
                float(values.get("font_size", defaults.font_size)), MIN_FONT_SIZE, MAX_FONT_SIZE
            )
        except (TypeError, ValueError) as exc:
            LOGGER.warning("Ignoring invalid settings values: %s", exc)
            return defaults

        wordlist = values.get("wordlist_path")
        return cls(
            wpm=wpm,
            length_delay_enabled=values.get("length_delay_enabled") is True,
            length_delay_factor=length_factor,
            frequency_delay_enabled=values.get("frequency_delay_enabled") is True,
            frequency_delay_factor=frequency_factor,
            font_size=font_size,
            wordlist_path=str(wordlist) if wordlist else None,
        )


class SettingsStore:
    """Load and save :class:`ReaderSettings` as JSON in the state directory.

    The store keeps the current settings in memory; :meth:`timing_settings` is
    the settings provider handed to the playback engine, so edits made through
    :meth:`update` apply from the next word on.
    """

    def __init__(self, state_dir: Optional[Path] = None) -> None:
        self.state_dir = Path(state_dir or default_state_dir())
        self.path = self.state_dir / SETTINGS_FILENAME
        self.current = self.load()

    def load(self) -> ReaderSettings:
        if not self.path.exists():
            return ReaderSettings()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Failed to read settings from %s: %s", self.path, exc)
            return ReaderSettings()
        if not isinstance(raw, dict):
            LOGGER.warning("Settings file %s does not hold an object; using defaults", self.path)
            return ReaderSettings()
        return ReaderSettings.from_dict(raw)

    def save(self) -> Path:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(self.current), indent=2), encoding="utf-8")
        LOGGER.debug("Saved settings to %s", self.path)
        return self.path

    def update(self, **changes: Any) -> ReaderSettings:
        self.current = replace(self.current, **changes)
        return self.current

    def timing_settings(self) -> TimingSettings:
        return self.current.timing()


__all__ = ["ReaderSettings", "SettingsStore", "default_state_dir"]
