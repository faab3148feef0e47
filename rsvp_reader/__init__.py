"""RSVP Reader package."""

from __future__ import annotations

__version__ = "0.1.0"

from .engine import PlaybackEngine, WordInfo
from .ingest import Book, Chapter, Paragraph, Word, load_book
from .position import Position
from .timing import TimingSettings, compute_delay

__all__ = [
    "Book",
    "Chapter",
    "Paragraph",
    "PlaybackEngine",
    "Position",
    "TimingSettings",
    "Word",
    "WordInfo",
    "compute_delay",
    "load_book",
]
