"""Word units: recognition point computation and paragraph splitting."""

from __future__ import annotations

import re
from typing import List

from ..ingest import Paragraph, Word

TRAILING_PUNCTUATION = frozenset(".,!?;:'\"—-")

_WHITESPACE_RE = re.compile(r"\s+")


def recognition_offset(text: str) -> int:
    """Return the zero-based index of the letter to fixate on in *text*.

    Trailing punctuation is ignored when measuring the word but the offset
    indexes into the full text.
    """

    length = len(text)
    while length > 0 and text[length - 1] in TRAILING_PUNCTUATION:
        length -= 1

    if length <= 1:
        return 0
    if length <= 3:
        return 1
    return length // 2 - 1


def make_word(text: str) -> Word:
    return Word(text=text, recognition_offset=recognition_offset(text))


def split_words(text: str) -> List[Word]:
    return [make_word(piece) for piece in _WHITESPACE_RE.split(text) if piece]


def make_paragraph(text: str, source_tag: str = "p") -> Paragraph:
    return Paragraph(words=split_words(text), source_tag=source_tag)


__all__ = [
    "TRAILING_PUNCTUATION",
    "make_paragraph",
    "make_word",
    "recognition_offset",
    "split_words",
]
