"""Playback engine: the state machine that drives RSVP reading.

The engine owns the reading state (status, position, speed, view mode) for a
single loaded book. Playback runs as a chain of single-shot continuations
armed through an injected scheduler; at most one continuation is pending at
any time. Navigation requests that cannot be honoured are silently ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Literal, Optional

from . import position as positions
from .ingest import Book, Word
from .position import Position, START
from .scheduling import Scheduler, TimerHandle
from .signals import Channel, Listener, Unsubscribe
from .timing import DEFAULT_TIMING_SETTINGS, DEFAULT_WPM, FrequencyLookup, TimingSettings, compute_delay

LOGGER = logging.getLogger(__name__)

Status = Literal["idle", "loading", "ready", "playing", "paused"]
ViewMode = Literal["rsvp", "paragraph"]

SettingsProvider = Callable[[], TimingSettings]


@dataclass(frozen=True)
class WordInfo:
    """The current word together with its place in the book."""

    word: Word
    position: Position
    total_words_in_paragraph: int
    total_paragraphs_in_chapter: int
    total_chapters: int
    chapter_title: str


class PlaybackEngine:
    """Track where the reader is and advance through the book on a timer."""

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        settings_provider: Optional[SettingsProvider] = None,
        frequency_lookup: Optional[FrequencyLookup] = None,
        wpm: int = DEFAULT_WPM,
    ) -> None:
        self._scheduler = scheduler
        self._settings_provider = settings_provider
        self._frequency_lookup = frequency_lookup

        self._status: Status = "idle"
        self._position = START
        self._wpm = wpm
        self._book: Optional[Book] = None
        self._view_mode: ViewMode = "rsvp"
        self._pending: Optional[TimerHandle] = None

        self._word_listeners: Channel[Optional[WordInfo]] = Channel()
        self._status_listeners: Channel[Status] = Channel()
        self._view_mode_listeners: Channel[ViewMode] = Channel()

    # Lifecycle ---------------------------------------------------------------
    def load_book(self, book: Book) -> None:
        self.pause()
        self._book = book
        self._position = START
        LOGGER.debug("Loaded '%s' with %d chapters", book.title, len(book.chapters))
        self._set_status("ready")
        self._notify_word_change()

    def close(self) -> None:
        self._cancel_pending()

    # Playback control ----------------------------------------------------------
    def play(self) -> None:
        if self._status not in ("ready", "paused"):
            return
        self._set_status("playing")
        self._schedule_next()

    def pause(self) -> None:
        self._cancel_pending()
        if self._status == "playing":
            self._set_status("paused")

    def toggle(self) -> None:
        if self._status == "playing":
            self.pause()
        else:
            self.play()

    # Navigation ---------------------------------------------------------------
    def next_word(self) -> None:
        if self._book is None:
            return
        self._cancel_pending()
        self._advance()
        self._notify_word_change()
        self._resume_if_playing()

    def prev_word(self) -> None:
        if self._book is None:
            return
        self._cancel_pending()
        self._position = positions.retreat(self._book, self._position)
        self._notify_word_change()
        self._resume_if_playing()

    def restart_paragraph(self) -> None:
        if self._book is None:
            return
        self._cancel_pending()
        self._position = Position(self._position.chapter_index, self._position.paragraph_index, 0)
        self._notify_word_change()
        self._resume_if_playing()

    def go_to_chapter(self, index: int) -> None:
        if self._book is None:
            return
        target = positions.chapter_start(self._book, index)
        if target is None:
            return
        self._move_to(target)

    def next_chapter(self) -> None:
        self.go_to_chapter(self._position.chapter_index + 1)

    def prev_chapter(self) -> None:
        self.go_to_chapter(self._position.chapter_index - 1)

    def set_position(self, position: Position) -> None:
        if self._book is None or not positions.is_valid(self._book, position):
            return
        self._move_to(position)

    def get_position(self) -> Position:
        return self._position

    # Speed and view -----------------------------------------------------------
    def set_wpm(self, wpm: int) -> None:
        self._wpm = wpm

    def get_wpm(self) -> int:
        return self._wpm

    def get_status(self) -> Status:
        return self._status

    def get_book(self) -> Optional[Book]:
        return self._book

    def get_view_mode(self) -> ViewMode:
        return self._view_mode

    def set_view_mode(self, mode: ViewMode) -> None:
        if mode == self._view_mode:
            return
        # Paragraph view is never autoplayed.
        if mode == "paragraph":
            self.pause()
        self._view_mode = mode
        self._view_mode_listeners.emit(mode)

    def toggle_view_mode(self) -> None:
        self.set_view_mode("paragraph" if self._view_mode == "rsvp" else "rsvp")

    def get_current_word_info(self) -> Optional[WordInfo]:
        if self._book is None:
            return None
        chapter_index, paragraph_index, word_index = (
            self._position.chapter_index,
            self._position.paragraph_index,
            self._position.word_index,
        )
        if not 0 <= chapter_index < len(self._book.chapters):
            return None
        chapter = self._book.chapters[chapter_index]
        if not 0 <= paragraph_index < len(chapter.paragraphs):
            return None
        paragraph = chapter.paragraphs[paragraph_index]
        if not 0 <= word_index < len(paragraph.words):
            return None
        return WordInfo(
            word=paragraph.words[word_index],
            position=self._position,
            total_words_in_paragraph=len(paragraph.words),
            total_paragraphs_in_chapter=len(chapter.paragraphs),
            total_chapters=len(self._book.chapters),
            chapter_title=chapter.title,
        )

    # Subscriptions ------------------------------------------------------------
    def on_word_change(self, callback: Listener) -> Unsubscribe:
        return self._word_listeners.connect(callback)

    def on_status_change(self, callback: Listener) -> Unsubscribe:
        return self._status_listeners.connect(callback)

    def on_view_mode_change(self, callback: Listener) -> Unsubscribe:
        return self._view_mode_listeners.connect(callback)

    # Internals ----------------------------------------------------------------
    def _set_status(self, status: Status) -> None:
        self._status = status
        self._status_listeners.emit(status)

    def _notify_word_change(self) -> None:
        self._word_listeners.emit(self.get_current_word_info())

    def _timing_settings(self) -> TimingSettings:
        if self._settings_provider is None:
            return DEFAULT_TIMING_SETTINGS
        return self._settings_provider()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _move_to(self, target: Position) -> None:
        self._cancel_pending()
        self._position = target
        self._notify_word_change()
        self._resume_if_playing()

    def _resume_if_playing(self) -> None:
        if self._status == "playing":
            self._schedule_next()

    def _advance(self) -> bool:
        """Step one word forward; pause and return False at the end of the book."""

        assert self._book is not None
        target = positions.advance(self._book, self._position)
        if target is None:
            LOGGER.debug("Reached the end of '%s'", self._book.title)
            self.pause()
            return False
        self._position = target
        return True

    def _schedule_next(self) -> None:
        if self._status != "playing":
            return
        self._cancel_pending()

        info = self.get_current_word_info()
        if info is None:
            self.pause()
            return

        delay = compute_delay(
            info.word.text,
            self._wpm,
            self._timing_settings(),
            self._frequency_lookup,
        )
        self._pending = self._scheduler.call_later(delay, self._on_timer)

    def _on_timer(self) -> None:
        self._pending = None
        if self._book is None or self._status != "playing":
            return
        self._advance()
        self._notify_word_change()
        self._schedule_next()


__all__ = [
    "PlaybackEngine",
    "SettingsProvider",
    "Status",
    "ViewMode",
    "WordInfo",
]
