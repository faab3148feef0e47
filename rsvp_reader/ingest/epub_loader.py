"""EPUB ingestion utilities."""

from __future__ import annotations

import logging
from pathlib import Path
import re
from typing import List, Optional

from bs4 import BeautifulSoup
import ebooklib
from ebooklib import epub

from . import Book, Chapter, Paragraph
from ..text.normalize import Normalizer
from ..text.words import make_paragraph

LOGGER = logging.getLogger(__name__)

BLOCK_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6"]
TITLE_TAGS = ["h1", "h2", "h3"]
MAX_TITLE_LENGTH = 100


class EpubLoader:
    """Extract chapters from EPUB files in reading (spine) order."""

    def __init__(self, *, normalizer: Optional[Normalizer] = None) -> None:
        self.normalizer = normalizer or Normalizer()

    def load(self, path: Path | str) -> Book:
        """Load the EPUB at *path* into a :class:`Book`."""

        book = epub.read_epub(str(path))
        documents = self._spine_documents(book)
        if not documents:
            LOGGER.warning("EPUB has no spine, falling back to document order.")
            documents = list(book.get_items_of_type(ebooklib.ITEM_DOCUMENT))

        chapters: List[Chapter] = []
        for idx, item in enumerate(documents):
            try:
                chapter = self._extract_chapter(item.get_content(), idx)
            except Exception as exc:
                LOGGER.warning("Failed to extract chapter %d (%s): %s", idx, item.get_name(), exc)
                continue
            if not chapter.paragraphs:
                LOGGER.debug("Skipping empty chapter %d (%s)", idx, item.get_name())
                continue
            chapters.append(chapter)

        return Book(
            title=self._first_metadata(book, "title") or "Untitled",
            author=self._first_metadata(book, "creator") or "Unknown",
            chapters=chapters,
        )

    def _spine_documents(self, book: epub.EpubBook) -> list:
        documents = []
        for entry in book.spine:
            idref = entry[0] if isinstance(entry, (list, tuple)) else entry
            item = book.get_item_with_id(idref)
            if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
                continue
            documents.append(item)
        return documents

    def _extract_chapter(self, content: bytes, index: int) -> Chapter:
        soup = BeautifulSoup(content, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        for line_break in soup.find_all("br"):
            line_break.replace_with(" ")

        paragraphs: List[Paragraph] = []
        for element in soup.find_all(BLOCK_TAGS):
            # Containers of other blocks would duplicate their children's text.
            if element.find(BLOCK_TAGS):
                continue
            text = self.normalizer.normalize(element.get_text())
            if not text:
                continue
            paragraph = make_paragraph(text, element.name.lower())
            if paragraph.words:
                paragraphs.append(paragraph)

        return Chapter(index=index, title=self._chapter_title(soup, index), paragraphs=paragraphs)

    def _chapter_title(self, soup: BeautifulSoup, index: int) -> str:
        heading = soup.find(TITLE_TAGS)
        if heading is not None:
            text = re.sub(r"\s+", " ", heading.get_text()).strip()
            if 0 < len(text) < MAX_TITLE_LENGTH:
                return text
        return f"Chapter {index + 1}"

    def _first_metadata(self, book: epub.EpubBook, key: str) -> Optional[str]:
        values = book.get_metadata("DC", key)
        if values:
            value = values[0][0]
            if isinstance(value, bytes):
                value = value.decode("utf-8", errors="ignore")
            value = re.sub(r"\s+", " ", str(value or "")).strip()
            return value or None
        return None


__all__ = ["EpubLoader"]
