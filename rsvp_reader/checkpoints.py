"""Reading checkpoints stored per book on the local filesystem.

Every book the reader has opened keeps one checkpoint file, so the checkpoint
directory doubles as the reader's library: :meth:`CheckpointStore.list_books`
returns the known books most recently read first.
"""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import json
import logging
from pathlib import Path
import time
from typing import List, Optional

from .engine import PlaybackEngine
from .position import Position, clamp, words_before
from .timing import clamp_wpm

LOGGER = logging.getLogger(__name__)

CHECKPOINT_DIRNAME = "checkpoints"


def book_hash(path: Path | str) -> str:
    """Return the SHA-256 hex digest of the book file's bytes."""

    digest = hashlib.sha256()
    with Path(path).open("rb") as handle:
        for block in iter(lambda: handle.read(1 << 16), b""):
            digest.update(block)
    return digest.hexdigest()


@dataclass
class Checkpoint:
    """The last saved reading position for a book."""

    book_hash: str
    book_title: str
    position: Position
    wpm: int
    chapter_title: Optional[str] = None
    saved_at: float = 0.0
    book_author: str = ""
    book_path: Optional[str] = None
    progress: float = 0.0

    def to_dict(self) -> dict:
        return {
            "book_hash": self.book_hash,
            "book_title": self.book_title,
            "book_author": self.book_author,
            "book_path": self.book_path,
            "position": self.position.as_dict(),
            "wpm": self.wpm,
            "chapter_title": self.chapter_title,
            "progress": self.progress,
            "saved_at": self.saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Checkpoint":
        position = data["position"]
        return cls(
            book_hash=str(data["book_hash"]),
            book_title=str(data.get("book_title", "")),
            position=Position(
                int(position["chapter_index"]),
                int(position["paragraph_index"]),
                int(position["word_index"]),
            ),
            wpm=int(data["wpm"]),
            chapter_title=data.get("chapter_title"),
            saved_at=float(data.get("saved_at", 0.0)),
            book_author=str(data.get("book_author") or ""),
            book_path=data.get("book_path"),
            progress=float(data.get("progress", 0.0)),
        )


class CheckpointStore:
    """Filesystem store that keeps the latest checkpoint of each book."""

    def __init__(self, base_dir: Path | str) -> None:
        base = Path(base_dir) / CHECKPOINT_DIRNAME
        base.mkdir(parents=True, exist_ok=True)
        self.base_dir = base

    def path_for(self, digest: str) -> Path:
        return self.base_dir / f"{digest}.json"

    def load(self, digest: str) -> Optional[Checkpoint]:
        path = self.path_for(digest)
        if not path.exists():
            return None
        try:
            return Checkpoint.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            LOGGER.warning("Ignoring unreadable checkpoint %s: %s", path, exc)
            return None

    def save(self, checkpoint: Checkpoint) -> Path:
        path = self.path_for(checkpoint.book_hash)
        path.write_text(json.dumps(checkpoint.to_dict(), indent=2), encoding="utf-8")
        LOGGER.debug(
            "Saved checkpoint for '%s' at %s", checkpoint.book_title, checkpoint.position
        )
        return path

    def save_engine(
        self,
        digest: str,
        engine: PlaybackEngine,
        book_path: Path | str | None = None,
    ) -> Optional[Checkpoint]:
        """Capture the engine's current position; no-op when no book is loaded.

        When *book_path* is omitted the path stored by an earlier save is kept,
        so the library can still reopen the file.
        """

        book = engine.get_book()
        if book is None:
            return None
        if book_path is None:
            previous = self.load(digest)
            book_path = previous.book_path if previous is not None else None
        position = engine.get_position()
        chapter_title = None
        if 0 <= position.chapter_index < len(book.chapters):
            chapter_title = book.chapters[position.chapter_index].title
        checkpoint = Checkpoint(
            book_hash=digest,
            book_title=book.title,
            position=position,
            wpm=engine.get_wpm(),
            chapter_title=chapter_title,
            saved_at=time.time(),
            book_author=book.author,
            book_path=str(book_path) if book_path is not None else None,
            progress=words_before(book, position) / max(1, book.word_count),
        )
        self.save(checkpoint)
        return checkpoint

    def list_books(self) -> List[Checkpoint]:
        """Return every readable checkpoint, most recently read first."""

        entries = []
        for path in self.base_dir.glob("*.json"):
            checkpoint = self.load(path.stem)
            if checkpoint is not None:
                entries.append(checkpoint)
        entries.sort(key=lambda entry: entry.saved_at, reverse=True)
        return entries

    def delete(self, digest: str) -> bool:
        """Forget a book; returns ``False`` when nothing was stored for it."""

        path = self.path_for(digest)
        if not path.exists():
            return False
        path.unlink()
        LOGGER.info("Removed checkpoint %s", digest)
        return True

    def find(self, prefix: str) -> Checkpoint:
        """Resolve a (possibly shortened) book hash to its checkpoint.

        Raises ``LookupError`` when no book or more than one book matches.
        """

        matches = [entry for entry in self.list_books() if entry.book_hash.startswith(prefix)]
        if len(matches) != 1:
            raise LookupError(f"'{prefix}' matches {len(matches)} books in the library")
        return matches[0]


def restore_position(engine: PlaybackEngine, checkpoint: Checkpoint) -> bool:
    """Apply *checkpoint* to an engine with a book loaded.

    Returns ``True`` when the saved position no longer fit the book and had to
    be clamped; surfacing that to the reader is the caller's job.
    """

    book = engine.get_book()
    if book is None:
        return False
    engine.set_wpm(clamp_wpm(checkpoint.wpm))
    position, was_clamped = clamp(book, checkpoint.position)
    if was_clamped:
        LOGGER.debug("Clamped saved position %s to %s", checkpoint.position, position)
    engine.set_position(position)
    return was_clamped


__all__ = ["Checkpoint", "CheckpointStore", "book_hash", "restore_position"]
