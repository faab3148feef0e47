"""Display duration model for RSVP playback.

Every word is shown for a base interval derived from the reading speed. Extra
time is added for trailing punctuation (always), for long words and for rare
words (both optional). All extras are multiples of the base interval so they
scale with the reading speed.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Callable, Optional

DEFAULT_WPM = 300
MIN_WPM = 100
MAX_WPM = 1000
WPM_STEP = 25

MAX_LENGTH_DELAY_FACTOR = 0.5
MAX_FREQUENCY_DELAY_FACTOR = 1.0

# Multipliers of the base interval, keyed by the word's last character.
PUNCTUATION_MULTIPLIERS = {
    ",": 0.75,
    ";": 0.75,
    ":": 0.75,
    ".": 1.5,
    "!": 1.5,
    "?": 1.5,
    "—": 1.0,
    "-": 0.25,
}

LENGTH_THRESHOLD = 5

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")
_NON_ALPHA_RE = re.compile(r"[^a-z]")

FrequencyLookup = Callable[[str], float]


@dataclass(frozen=True)
class TimingSettings:
    """User-adjustable extras applied on top of the base interval."""

    length_delay_enabled: bool = False
    length_delay_factor: float = 0.1
    frequency_delay_enabled: bool = False
    frequency_delay_factor: float = 0.3

    def __post_init__(self) -> None:
        if not 0.0 <= self.length_delay_factor <= MAX_LENGTH_DELAY_FACTOR:
            raise ValueError(
                f"length_delay_factor must be within [0, {MAX_LENGTH_DELAY_FACTOR}]"
            )
        if not 0.0 <= self.frequency_delay_factor <= MAX_FREQUENCY_DELAY_FACTOR:
            raise ValueError(
                f"frequency_delay_factor must be within [0, {MAX_FREQUENCY_DELAY_FACTOR}]"
            )


DEFAULT_TIMING_SETTINGS = TimingSettings()


def base_interval(wpm: float) -> float:
    return 60000.0 / wpm


def punctuation_delay(word: str, base: float) -> float:
    multiplier = PUNCTUATION_MULTIPLIERS.get(word[-1:], 0.0)
    return base * multiplier


def length_delay(word: str, base: float, factor: float) -> float:
    stripped = _NON_ALNUM_RE.sub("", word)
    extra_chars = len(stripped) - LENGTH_THRESHOLD
    if extra_chars <= 0:
        return 0.0
    return extra_chars * factor * base


def normalize_for_lookup(word: str) -> str:
    """Lowercase *word* and keep only the letters a-z."""

    return _NON_ALPHA_RE.sub("", word.lower())


def frequency_delay(
    word: str,
    base: float,
    factor: float,
    lookup: Optional[FrequencyLookup],
) -> float:
    if lookup is None:
        return 0.0
    normalized = normalize_for_lookup(word)
    if not normalized:
        return 0.0
    return lookup(normalized) * factor * base


def compute_delay(
    word: str,
    wpm: float,
    settings: TimingSettings = DEFAULT_TIMING_SETTINGS,
    lookup: Optional[FrequencyLookup] = None,
) -> float:
    """Return how long *word* stays on screen, in milliseconds."""

    base = base_interval(wpm)
    total = base + punctuation_delay(word, base)
    if settings.length_delay_enabled:
        total += length_delay(word, base, settings.length_delay_factor)
    if settings.frequency_delay_enabled:
        total += frequency_delay(word, base, settings.frequency_delay_factor, lookup)
    return total


def clamp_wpm(value: float) -> int:
    """Snap *value* onto the speed grid and clamp it into the supported range."""

    snapped = int(round(value / WPM_STEP)) * WPM_STEP
    return max(MIN_WPM, min(MAX_WPM, snapped))


__all__ = [
    "DEFAULT_TIMING_SETTINGS",
    "DEFAULT_WPM",
    "MAX_WPM",
    "MIN_WPM",
    "PUNCTUATION_MULTIPLIERS",
    "TimingSettings",
    "WPM_STEP",
    "base_interval",
    "clamp_wpm",
    "compute_delay",
    "frequency_delay",
    "length_delay",
    "normalize_for_lookup",
    "punctuation_delay",
]
