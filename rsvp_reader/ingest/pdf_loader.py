"""PDF ingestion utilities."""

from __future__ import annotations

import collections
import logging
from pathlib import Path
import re
from typing import Dict, Iterable, List, Optional

from pypdf import PdfReader

from . import Book, Chapter, Paragraph
from ..text.normalize import NormalizationOptions, Normalizer
from ..text.words import make_paragraph

LOGGER = logging.getLogger(__name__)

SENTENCE_END_RE = re.compile(r"[.!?][\"')\]]*$")


class PdfLoader:
    """Extract chapters from PDFs using heading heuristics.

    Page headers and footers that repeat across many pages are dropped. A
    paragraph ends at a blank line or at a short line that finishes a
    sentence.
    """

    def __init__(
        self,
        *,
        min_heading_length: int = 6,
        heading_patterns: Optional[Iterable[str]] = None,
        common_threshold: float = 0.4,
        short_line_ratio: float = 0.7,
        normalizer: Optional[Normalizer] = None,
    ) -> None:
        self.min_heading_length = min_heading_length
        self.heading_patterns = [re.compile(p, re.I) for p in heading_patterns or []]
        self.common_threshold = common_threshold
        self.short_line_ratio = short_line_ratio
        self.normalizer = normalizer or Normalizer(NormalizationOptions(strip_page_numbers=True))

    def load(self, path: Path | str) -> Book:
        reader = PdfReader(str(path))
        page_texts = [page.extract_text() or "" for page in reader.pages]
        headers, footers = self._detect_repeated_lines(page_texts)

        chapters: List[Chapter] = []
        blocks: List[str] = []
        current_lines: List[str] = []
        current_title: Optional[str] = None

        def end_paragraph() -> None:
            nonlocal current_lines
            if current_lines:
                blocks.append(" ".join(current_lines))
            current_lines = []

        def flush() -> None:
            nonlocal blocks, current_title
            end_paragraph()
            if current_title:
                paragraphs = self._build_paragraphs(blocks)
                if paragraphs:
                    chapters.append(
                        Chapter(index=len(chapters), title=current_title, paragraphs=paragraphs)
                    )
            blocks = []
            current_title = None

        for text in page_texts:
            lines = self._strip_common_lines(text, headers, footers)
            longest = max((len(line) for line in lines if line), default=0)
            for line in lines:
                if not line:
                    end_paragraph()
                    continue
                if self._is_heading(line):
                    flush()
                    current_title = line
                    continue
                current_lines.append(line)
                if SENTENCE_END_RE.search(line) and len(line) < longest * self.short_line_ratio:
                    end_paragraph()
        flush()

        if not chapters and any(text.strip() for text in page_texts):
            LOGGER.warning("PDF heading detection failed; creating single chapter.")
            normalized = self.normalizer.normalize("\n\n".join(page_texts))
            chapters.append(
                Chapter(index=0, title="Full Book", paragraphs=self._build_paragraphs([normalized]))
            )

        info = reader.metadata or {}
        return Book(
            title=str(info.get("/Title") or Path(path).stem),
            author=str(info.get("/Author") or "Unknown"),
            chapters=chapters,
        )

    def _build_paragraphs(self, blocks: List[str]) -> List[Paragraph]:
        paragraphs: List[Paragraph] = []
        for block in blocks:
            text = self.normalizer.normalize(block)
            for chunk in re.split(r"\n\s*\n", text):
                paragraph = make_paragraph(" ".join(chunk.split()))
                if paragraph.words:
                    paragraphs.append(paragraph)
        return paragraphs

    def _detect_repeated_lines(self, pages: List[str]) -> tuple[Dict[str, int], Dict[str, int]]:
        header_counts: Dict[str, int] = collections.Counter()
        footer_counts: Dict[str, int] = collections.Counter()
        for text in pages:
            lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
            if not lines:
                continue
            header_counts[lines[0]] += 1
            footer_counts[lines[-1]] += 1
        # A single page cannot have repeated headers.
        if len(pages) < 2:
            return {}, {}
        threshold = max(2, int(len(pages) * self.common_threshold))
        headers = {line: count for line, count in header_counts.items() if count >= threshold}
        footers = {line: count for line, count in footer_counts.items() if count >= threshold}
        return headers, footers

    def _strip_common_lines(
        self, text: str, headers: Dict[str, int], footers: Dict[str, int]
    ) -> List[str]:
        lines = []
        for line in text.splitlines():
            stripped = line.strip()
            if stripped and (stripped in headers or stripped in footers):
                continue
            if re.fullmatch(r"\d+", stripped):
                continue
            lines.append(stripped)
        return lines

    def _is_heading(self, line: str) -> bool:
        if len(line) < self.min_heading_length:
            return False
        if any(pattern.search(line) for pattern in self.heading_patterns):
            return True
        if line.isupper():
            return True
        if re.match(r"^(chapter|book|part|section)\b", line, flags=re.I):
            return True
        if re.match(r"^[IVXLCM]+\.?(\s+.+)?$", line):
            return True
        return False


__all__ = ["PdfLoader"]
