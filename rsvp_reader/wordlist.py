"""Ranked word list used to slow down on uncommon words."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

LOGGER = logging.getLogger(__name__)

# (highest rank in bucket, multiplier), checked in order.
BUCKET_THRESHOLDS = (
    (1000, 0.0),
    (3000, 0.25),
    (5000, 0.5),
    (10000, 0.75),
)
NOT_IN_LIST_MULTIPLIER = 1.0


class FrequencyTable:
    """Map normalized words to a delay multiplier based on their rank.

    Ranks are 1-based line numbers in the source list; a word listed twice
    keeps its later rank. Words missing from a non-empty table are treated as
    rare. An empty table disables the lookup entirely and returns ``0`` for
    every word.
    """

    def __init__(self, ranks: Optional[Mapping[str, int]] = None) -> None:
        self._ranks: Dict[str, int] = dict(ranks or {})

    @classmethod
    def from_words(cls, words: Iterable[str]) -> "FrequencyTable":
        ranks: Dict[str, int] = {}
        rank = 0
        for line in words:
            word = line.strip().lower()
            if not word:
                continue
            rank += 1
            ranks[word] = rank
        return cls(ranks)

    @classmethod
    def from_file(cls, path: Path | str | None) -> "FrequencyTable":
        if not path:
            return cls()
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            LOGGER.warning("Word list %s not found; frequency delays disabled", path)
            return cls()
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Failed to read word list %s: %s", path, exc)
            return cls()
        table = cls.from_words(text.splitlines())
        LOGGER.info("Loaded %d words from frequency list %s", len(table), path)
        return table

    def __len__(self) -> int:
        return len(self._ranks)

    def rank(self, word: str) -> Optional[int]:
        return self._ranks.get(word)

    def bucket_multiplier(self, word: str) -> float:
        if not self._ranks or not word:
            return 0.0
        rank = self._ranks.get(word)
        if rank is None:
            return NOT_IN_LIST_MULTIPLIER
        for max_rank, multiplier in BUCKET_THRESHOLDS:
            if rank <= max_rank:
                return multiplier
        return NOT_IN_LIST_MULTIPLIER


__all__ = ["BUCKET_THRESHOLDS", "FrequencyTable", "NOT_IN_LIST_MULTIPLIER"]
