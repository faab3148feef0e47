"""Reading positions and the navigation algebra over a book's shape.

All functions are pure: they take a book and a position and return a new
position without touching any engine state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .ingest import Book, Paragraph


@dataclass(frozen=True)
class Position:
    """Zero-based chapter/paragraph/word indices into a book."""

    chapter_index: int = 0
    paragraph_index: int = 0
    word_index: int = 0

    def as_dict(self) -> dict:
        return {
            "chapter_index": self.chapter_index,
            "paragraph_index": self.paragraph_index,
            "word_index": self.word_index,
        }


START = Position(0, 0, 0)


def _paragraph_at(book: Book, position: Position) -> Optional[Paragraph]:
    if not 0 <= position.chapter_index < len(book.chapters):
        return None
    paragraphs = book.chapters[position.chapter_index].paragraphs
    if not 0 <= position.paragraph_index < len(paragraphs):
        return None
    return paragraphs[position.paragraph_index]


def is_valid(book: Book, position: Position) -> bool:
    paragraph = _paragraph_at(book, position)
    if paragraph is None:
        return False
    return 0 <= position.word_index < len(paragraph.words)


def advance(book: Book, position: Position) -> Optional[Position]:
    """Move one word forward, crossing paragraph and chapter boundaries.

    Returns ``None`` at the end of the book. A position that does not resolve
    to an existing paragraph is returned unchanged.
    """

    paragraph = _paragraph_at(book, position)
    if paragraph is None:
        return position

    chapter_index, paragraph_index, word_index = (
        position.chapter_index,
        position.paragraph_index,
        position.word_index,
    )
    if word_index + 1 < len(paragraph.words):
        return Position(chapter_index, paragraph_index, word_index + 1)
    if paragraph_index + 1 < len(book.chapters[chapter_index].paragraphs):
        return Position(chapter_index, paragraph_index + 1, 0)
    if chapter_index + 1 < len(book.chapters):
        return Position(chapter_index + 1, 0, 0)
    return None


def _last_word_index(paragraph: Optional[Paragraph]) -> int:
    if paragraph is None:
        return 0
    return max(0, len(paragraph.words) - 1)


def retreat(book: Book, position: Position) -> Position:
    """Move one word back; at the very start of the book nothing moves."""

    chapter_index, paragraph_index, word_index = (
        position.chapter_index,
        position.paragraph_index,
        position.word_index,
    )
    if word_index > 0:
        return Position(chapter_index, paragraph_index, word_index - 1)

    if paragraph_index > 0:
        previous = _paragraph_at(book, Position(chapter_index, paragraph_index - 1))
        return Position(chapter_index, paragraph_index - 1, _last_word_index(previous))

    if 0 < chapter_index <= len(book.chapters):
        chapter = book.chapters[chapter_index - 1]
        last_paragraph = max(0, len(chapter.paragraphs) - 1)
        paragraph = chapter.paragraphs[last_paragraph] if chapter.paragraphs else None
        return Position(chapter_index - 1, last_paragraph, _last_word_index(paragraph))

    return position


def chapter_start(book: Book, index: int) -> Optional[Position]:
    if not 0 <= index < len(book.chapters):
        return None
    return Position(index, 0, 0)


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper))


def clamp(book: Book, position: Position) -> Tuple[Position, bool]:
    """Force *position* into the bounds of *book*.

    Returns the clamped position and whether any component changed. Chapters
    without paragraphs are skipped backwards, stopping at chapter 0 even when
    it is empty.
    """

    if not book.chapters:
        return START, position != START

    chapter_index = _clamp(position.chapter_index, len(book.chapters) - 1)
    chapter = book.chapters[chapter_index]
    while not chapter.paragraphs and chapter_index > 0:
        chapter_index -= 1
        chapter = book.chapters[chapter_index]

    paragraph_index = _clamp(position.paragraph_index, max(0, len(chapter.paragraphs) - 1))
    if chapter.paragraphs:
        paragraph = chapter.paragraphs[paragraph_index]
        word_index = _clamp(position.word_index, max(0, len(paragraph.words) - 1))
    else:
        word_index = 0

    clamped = Position(chapter_index, paragraph_index, word_index)
    return clamped, clamped != position


def words_before(book: Book, position: Position) -> int:
    """Count the words that precede *position* in reading order."""

    count = 0
    for chapter in book.chapters[: position.chapter_index]:
        count += chapter.word_count
    if position.chapter_index < len(book.chapters):
        paragraphs = book.chapters[position.chapter_index].paragraphs
        for paragraph in paragraphs[: position.paragraph_index]:
            count += len(paragraph.words)
    return count + position.word_index


__all__ = [
    "Position",
    "START",
    "advance",
    "chapter_start",
    "clamp",
    "is_valid",
    "retreat",
    "words_before",
]
