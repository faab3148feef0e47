"""Command line interface for RSVP Reader."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys
import time
from typing import List, Optional, TextIO

from . import __version__
from .checkpoints import Checkpoint, CheckpointStore, book_hash, restore_position
from .engine import PlaybackEngine, WordInfo
from .ingest import Book, load_book
from .position import words_before
from .scheduling import AsyncioScheduler
from .settings import SettingsStore
from .timing import clamp_wpm
from .wordlist import FrequencyTable

LOGGER = logging.getLogger(__name__)

PIVOT_COLUMN = 12
HASH_DISPLAY_LENGTH = 12


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rsvp-reader",
        description="Read an EPUB, PDF or text file one word at a time in the terminal.",
    )
    parser.add_argument("book", type=Path, nargs="?", help="Input EPUB/PDF/text file")
    parser.add_argument("--wpm", type=int, help="Reading speed in words per minute (100-1000)")
    parser.add_argument("--chapter", type=int, help="Start at this chapter (1-based)")
    parser.add_argument(
        "--length-delay",
        type=float,
        nargs="?",
        const=0.1,
        metavar="FACTOR",
        help="Linger on long words (factor 0-0.5, default 0.1)",
    )
    parser.add_argument(
        "--frequency-delay",
        type=float,
        nargs="?",
        const=0.3,
        metavar="FACTOR",
        help="Linger on uncommon words (factor 0-1, default 0.3)",
    )
    parser.add_argument("--wordlist", type=Path, help="Ranked word list, one word per line")
    parser.add_argument("--no-resume", action="store_true", help="Ignore the saved reading position")
    parser.add_argument("--outline", action="store_true", help="Print the chapter list and exit")
    parser.add_argument("--library", action="store_true", help="List previously read books and exit")
    parser.add_argument(
        "--forget",
        metavar="HASH",
        help="Remove a book (by hash or hash prefix) from the library and exit",
    )
    parser.add_argument("--state-dir", type=Path, help="Directory for settings and checkpoints")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print warnings and errors")
    parser.add_argument("--version", action="version", version=f"rsvp-reader {__version__}")
    return parser


def configure_logging(verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def apply_overrides(store: SettingsStore, namespace: argparse.Namespace) -> None:
    changes = {}
    if namespace.wpm is not None:
        changes["wpm"] = clamp_wpm(namespace.wpm)
    if namespace.length_delay is not None:
        changes["length_delay_enabled"] = True
        changes["length_delay_factor"] = namespace.length_delay
    if namespace.frequency_delay is not None:
        changes["frequency_delay_enabled"] = True
        changes["frequency_delay_factor"] = namespace.frequency_delay
    if namespace.wordlist is not None:
        changes["wordlist_path"] = str(namespace.wordlist)
    if changes:
        store.update(**changes)


def format_outline(book: Book) -> str:
    lines = [f"{book.title} by {book.author}", ""]
    for number, chapter in enumerate(book.chapters, start=1):
        lines.append(
            f"{number:>3}. {chapter.title} "
            f"({len(chapter.paragraphs)} paragraphs, {chapter.word_count} words)"
        )
    lines.append("")
    lines.append(f"Total: {book.word_count} words")
    return "\n".join(lines)


def format_library(entries: List[Checkpoint]) -> str:
    if not entries:
        return "No books read yet."
    lines = []
    for entry in entries:
        author = entry.book_author or "Unknown"
        where = entry.chapter_title or f"Chapter {entry.position.chapter_index + 1}"
        last_read = time.strftime("%Y-%m-%d %H:%M", time.localtime(entry.saved_at))
        lines.append(f"{entry.book_hash[:HASH_DISPLAY_LENGTH]}  {entry.book_title} by {author}")
        lines.append(f"    {where}, {entry.progress:.0%} read, last read {last_read}")
        if entry.book_path:
            lines.append(f"    {entry.book_path}")
    return "\n".join(lines)


def show_library(checkpoints: CheckpointStore, forget: Optional[str] = None) -> int:
    if forget:
        entry = checkpoints.find(forget)
        checkpoints.delete(entry.book_hash)
        print(f"Forgot {entry.book_title}")
    print(format_library(checkpoints.list_books()))
    return 0


def render_word(info: WordInfo) -> str:
    """Lay out the word so its recognition letter sits in a fixed column."""

    text = info.word.text
    offset = min(info.word.recognition_offset, max(0, len(text) - 1))
    left, pivot, right = text[:offset], text[offset : offset + 1], text[offset + 1 :]
    padding = " " * max(0, PIVOT_COLUMN - len(left))
    return f"{padding}{left}[{pivot}]{right}"


class TerminalDisplay:
    """Redraw the current word on a single terminal line."""

    def __init__(self, stream: TextIO, book: Book) -> None:
        self.stream = stream
        self.total_words = max(1, book.word_count)
        self.book = book
        self.interactive = stream.isatty()

    def show(self, info: Optional[WordInfo]) -> None:
        if info is None:
            return
        percent = 100 * words_before(self.book, info.position) // self.total_words
        chapter = info.position.chapter_index + 1
        line = f"{render_word(info):<40}  ch {chapter}/{info.total_chapters}  {percent:>3}%"
        if self.interactive:
            self.stream.write(f"\r\x1b[K{line}")
        else:
            self.stream.write(f"{line}\n")
        self.stream.flush()

    def finish(self) -> None:
        if self.interactive:
            self.stream.write("\n")
            self.stream.flush()


async def read_book(
    book: Book,
    book_path: Path,
    store: SettingsStore,
    *,
    resume: bool = True,
    wpm: Optional[int] = None,
    chapter: Optional[int] = None,
    stream: Optional[TextIO] = None,
) -> PlaybackEngine:
    """Play *book* until the end or until cancelled, saving the position on pause."""

    settings = store.current
    table = FrequencyTable.from_file(settings.wordlist_path) if settings.frequency_delay_enabled else None
    loop = asyncio.get_running_loop()
    finished = loop.create_future()
    engine = PlaybackEngine(
        AsyncioScheduler(loop),
        settings_provider=store.timing_settings,
        frequency_lookup=table.bucket_multiplier if table is not None else None,
        wpm=settings.wpm,
    )
    display = TerminalDisplay(stream or sys.stdout, book)
    checkpoints = CheckpointStore(store.state_dir)
    digest = book_hash(book_path)

    engine.load_book(book)
    if resume:
        checkpoint = checkpoints.load(digest)
        if checkpoint is not None:
            if restore_position(engine, checkpoint):
                LOGGER.warning(
                    "Saved position (chapter %d) was out of bounds; the book has %d chapters. "
                    "Restored to chapter %d instead.",
                    checkpoint.position.chapter_index + 1,
                    len(book.chapters),
                    engine.get_position().chapter_index + 1,
                )
    if wpm is not None:
        engine.set_wpm(clamp_wpm(wpm))
    if chapter is not None:
        engine.go_to_chapter(chapter - 1)

    def on_status(status: str) -> None:
        if status != "paused":
            return
        checkpoints.save_engine(digest, engine, Path(book_path).resolve())
        if not finished.done():
            finished.set_result(None)

    engine.on_word_change(display.show)
    engine.on_status_change(on_status)
    display.show(engine.get_current_word_info())
    LOGGER.debug("Starting playback at %s, %d wpm", engine.get_position(), engine.get_wpm())
    engine.play()
    try:
        await finished
    finally:
        engine.pause()
        engine.close()
        display.finish()
    return engine


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.book is None and not (args.library or args.forget):
        parser.error("a book file is required unless --library or --forget is given")
    configure_logging(args.verbose, args.quiet)
    try:
        store = SettingsStore(args.state_dir)
        if args.library or args.forget:
            return show_library(CheckpointStore(store.state_dir), forget=args.forget)
        apply_overrides(store, args)
        book = load_book(args.book)
        if args.outline:
            print(format_outline(book))
            return 0
        asyncio.run(
            read_book(
                book,
                args.book,
                store,
                resume=not args.no_resume,
                wpm=args.wpm,
                chapter=args.chapter,
            )
        )
    except KeyboardInterrupt:
        LOGGER.info("Paused; position saved")
        return 0
    except Exception as exc:  # pragma: no cover - CLI safety net
        LOGGER.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
