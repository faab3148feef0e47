"""Text normalization helpers applied before words are split out."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Mapping, MutableMapping

DEFAULT_LIGATURES = {
    "ﬀ": "ff",
    "ﬁ": "fi",
    "ﬂ": "fl",
    "ﬃ": "ffi",
    "ﬄ": "ffl",
    "ﬅ": "st",
    "ﬆ": "st",
}

# Dashes are left alone: the timing model pauses on a trailing em dash.
SMART_QUOTES = {
    "“": '"',
    "”": '"',
    "„": '"',
    "‘": "'",
    "’": "'",
    "‚": "'",
}

SOFT_HYPHEN = "\u00ad"


@dataclass
class NormalizationOptions:
    """Configuration toggles for text normalization."""

    fix_hyphenation: bool = True
    normalize_quotes: bool = True
    replace_ligatures: bool = True
    remove_soft_hyphens: bool = True
    strip_page_numbers: bool = False
    collapse_whitespace: bool = True
    custom_replacements: MutableMapping[str, str] = field(default_factory=dict)


class Normalizer:
    """Normalize extracted text according to configured options.

    Paragraph breaks (blank lines) survive normalization so loaders can split
    the result into paragraphs afterwards.
    """

    def __init__(self, options: NormalizationOptions | None = None) -> None:
        self.options = options or NormalizationOptions()

    def normalize(self, text: str) -> str:
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        if self.options.remove_soft_hyphens:
            text = text.replace(SOFT_HYPHEN, "")
        if self.options.fix_hyphenation:
            text = self._fix_hyphenation(text)
        if self.options.normalize_quotes:
            text = self._apply_mapping(text, SMART_QUOTES)
        if self.options.replace_ligatures:
            text = self._apply_mapping(text, DEFAULT_LIGATURES)
        if self.options.strip_page_numbers:
            text = self._strip_page_numbers(text)
        if self.options.custom_replacements:
            text = self._apply_mapping(text, self.options.custom_replacements)
        if self.options.collapse_whitespace:
            text = self._collapse_whitespace(text)
        return text.strip()

    def _fix_hyphenation(self, text: str) -> str:
        return re.sub(r"(\w+)-\n(\w+)", r"\1\2", text)

    def _strip_page_numbers(self, text: str) -> str:
        lines = [line for line in text.split("\n") if not re.fullmatch(r"\d+", line.strip())]
        return "\n".join(lines)

    def _apply_mapping(self, text: str, mapping: Mapping[str, str]) -> str:
        pattern = re.compile("|".join(re.escape(k) for k in mapping.keys()))

        def repl(match: re.Match[str]) -> str:
            return mapping[match.group(0)]

        return pattern.sub(repl, text)

    def _collapse_whitespace(self, text: str) -> str:
        text = re.sub(r"[\t \u00a0]+", " ", text)
        text = re.sub(r" ?\n ?", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text


__all__ = ["Normalizer", "NormalizationOptions"]
