from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Sequence

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rsvp_reader.ingest import Book, Chapter, Paragraph  # noqa: E402
from rsvp_reader.text.words import make_paragraph  # noqa: E402


class FakeTimer:
    def __init__(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose timers only fire when a test says so."""

    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay_ms, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> List[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled and not timer.fired]

    def fire_next(self) -> FakeTimer:
        timer = self.active[0]
        timer.fired = True
        timer.callback()
        return timer

    def run_until_idle(self, limit: int = 1000) -> int:
        fired = 0
        while self.active and fired < limit:
            self.fire_next()
            fired += 1
        return fired


def build_book(shape: Sequence[Sequence[str]], title: str = "Test Book") -> Book:
    """Build a book from chapters given as lists of paragraph texts."""

    chapters = []
    for index, paragraphs in enumerate(shape):
        chapters.append(
            Chapter(
                index=index,
                title=f"Chapter {index + 1}",
                paragraphs=[make_paragraph(text) for text in paragraphs],
            )
        )
    return Book(title=title, author="Tester", chapters=chapters)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def make_book() -> Callable[..., Book]:
    return build_book


@pytest.fixture
def book() -> Book:
    # Chapter 1: 2 paragraphs (3 + 2 words); chapter 2: 1 paragraph (2 words).
    return build_book(
        [
            ["The quick fox,", "jumps over."],
            ["Lazy dogs!"],
        ]
    )


@pytest.fixture
def empty_paragraph_book() -> Book:
    return Book(
        title="Sparse",
        author="Tester",
        chapters=[
            Chapter(index=0, title="One", paragraphs=[make_paragraph("alpha beta")]),
            Chapter(index=2, title="Two", paragraphs=[]),
            Chapter(index=3, title="Three", paragraphs=[Paragraph(words=[]), make_paragraph("gamma")]),
        ],
    )
