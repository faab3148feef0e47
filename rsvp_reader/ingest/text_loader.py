"""Plain text and Markdown ingestion."""

from __future__ import annotations

import logging
from pathlib import Path
import re
from typing import List, Optional

from . import Book, Chapter, Paragraph
from ..text.normalize import Normalizer
from ..text.words import make_paragraph

LOGGER = logging.getLogger(__name__)

MAX_HEADING_LENGTH = 80
HEADING_RE = re.compile(r"^(?:#{1,6}\s+(?P<markdown>.+)|(?P<chapter>chapter\s+\S.*))$", re.I)


class TextLoader:
    """Split a text file into chapters at headings and paragraphs at blank lines.

    Markdown ``#`` headings and lines starting with "Chapter" open a new
    chapter. Text before the first heading forms a chapter titled after the
    file.
    """

    def __init__(self, *, normalizer: Optional[Normalizer] = None) -> None:
        self.normalizer = normalizer or Normalizer()

    def load(self, path: Path | str) -> Book:
        path = Path(path)
        text = self.normalizer.normalize(self._read(path))
        book_title = path.stem.replace("_", " ").strip() or "Untitled"

        chapters: List[Chapter] = []
        paragraphs: List[Paragraph] = []
        title = book_title
        section = 0

        def flush() -> None:
            nonlocal paragraphs, section
            if paragraphs:
                chapters.append(Chapter(index=section, title=title, paragraphs=paragraphs))
            else:
                LOGGER.debug("Skipping empty section %d", section)
            paragraphs = []
            section += 1

        for block in re.split(r"\n\s*\n", text):
            lines = [line.strip() for line in block.split("\n") if line.strip()]
            if not lines:
                continue
            heading = HEADING_RE.match(lines[0]) if len(lines[0]) <= MAX_HEADING_LENGTH else None
            if heading:
                if paragraphs or chapters:
                    flush()
                title = (heading.group("markdown") or heading.group("chapter")).strip()
                paragraphs.append(make_paragraph(title, "h1"))
                lines = lines[1:]
            body = " ".join(line.lstrip("> ") for line in lines)
            paragraph = make_paragraph(body, "p")
            if paragraph.words:
                paragraphs.append(paragraph)
        flush()

        return Book(title=book_title, author="Unknown", chapters=chapters)

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            LOGGER.warning("Failed to decode %s as UTF-8; attempting latin-1", path)
            return path.read_text(encoding="latin-1")


__all__ = ["TextLoader"]
