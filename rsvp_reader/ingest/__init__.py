"""Book model and content ingestion helpers for RSVP Reader."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

SUPPORTED_EXTENSIONS = {".epub", ".pdf", ".txt", ".md", ".markdown"}


@dataclass(frozen=True)
class Word:
    """A single displayable word and the letter the eye should fixate on."""

    text: str
    recognition_offset: int


@dataclass
class Paragraph:
    """An ordered run of words extracted from one structural element."""

    words: List[Word] = field(default_factory=list)
    source_tag: str = "p"

    @property
    def text(self) -> str:
        return " ".join(word.text for word in self.words)


@dataclass
class Chapter:
    """Representation of a logical chapter extracted from a book.

    ``index`` is the chapter's position in the unfiltered source document and
    may have gaps where empty sections were dropped. Navigation always uses the
    chapter's position in ``Book.chapters`` instead.
    """

    index: int
    title: str
    paragraphs: List[Paragraph] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return sum(len(paragraph.words) for paragraph in self.paragraphs)


@dataclass
class Book:
    """A fully extracted book ready to be handed to the playback engine."""

    title: str
    author: str
    chapters: List[Chapter] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return sum(chapter.word_count for chapter in self.chapters)

    @property
    def is_playable(self) -> bool:
        return self.word_count > 0


def load_book(path: Path | str) -> Book:
    """Dispatch to the appropriate loader based on the file extension."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file does not exist: {path}")

    suffix = path.suffix.lower()
    if suffix == ".epub":
        from .epub_loader import EpubLoader

        book = EpubLoader().load(path)
    elif suffix == ".pdf":
        from .pdf_loader import PdfLoader

        book = PdfLoader().load(path)
    elif suffix in {".txt", ".md", ".markdown"}:
        from .text_loader import TextLoader

        book = TextLoader().load(path)
    else:
        raise ValueError(
            f"Unsupported file format: '{suffix}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    if not book.is_playable:
        raise ValueError(f"No readable content found in {path.name}")
    return book


__all__ = ["Book", "Chapter", "Paragraph", "Word", "SUPPORTED_EXTENSIONS", "load_book"]
