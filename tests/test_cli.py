import asyncio
import io

import pytest

from rsvp_reader import cli
from rsvp_reader.checkpoints import Checkpoint, CheckpointStore, book_hash
from rsvp_reader.engine import WordInfo
from rsvp_reader.ingest import load_book
from rsvp_reader.position import Position
from rsvp_reader.settings import SettingsStore
from rsvp_reader.text.words import make_word


def _info(text):
    return WordInfo(
        word=make_word(text),
        position=Position(),
        total_words_in_paragraph=1,
        total_paragraphs_in_chapter=1,
        total_chapters=1,
        chapter_title="One",
    )


def _write_story(tmp_path):
    path = tmp_path / "story.txt"
    path.write_text("Chapter One\n\nIt was dark.\n\nChapter Two\n\nMore text.\n", encoding="utf-8")
    return path


def test_render_word_aligns_pivot_letter():
    short = cli.render_word(_info("hello"))
    long = cli.render_word(_info("wonderful."))

    assert short == " " * 11 + "h[e]llo"
    assert long.index("[") == short.index("[")


def test_format_outline_lists_chapters(book):
    outline = cli.format_outline(book)

    assert outline.splitlines()[0] == "Test Book by Tester"
    assert "  1. Chapter 1 (2 paragraphs, 5 words)" in outline
    assert outline.endswith("Total: 7 words")


def test_apply_overrides_updates_settings(tmp_path):
    store = SettingsStore(tmp_path)
    args = cli.build_parser().parse_args(
        ["book.epub", "--wpm", "333", "--length-delay", "--frequency-delay", "0.6", "--wordlist", "w.txt"]
    )

    cli.apply_overrides(store, args)

    assert store.current.wpm == 325
    assert store.current.length_delay_enabled is True
    assert store.current.length_delay_factor == 0.1
    assert store.current.frequency_delay_factor == 0.6
    assert store.current.wordlist_path == "w.txt"


def test_main_prints_outline(tmp_path, capsys):
    path = _write_story(tmp_path)

    code = cli.main([str(path), "--outline", "--state-dir", str(tmp_path / "state")])

    assert code == 0
    out = capsys.readouterr().out
    assert "1. Chapter One" in out
    assert "2. Chapter Two" in out


def test_main_reports_missing_book(tmp_path):
    assert cli.main([str(tmp_path / "nowhere.txt"), "--state-dir", str(tmp_path)]) == 1


def test_read_book_plays_to_end_and_saves_checkpoint(tmp_path):
    path = _write_story(tmp_path)
    book = load_book(path)
    store = SettingsStore(tmp_path)
    stream = io.StringIO()

    engine = asyncio.run(cli.read_book(book, path, store, wpm=1000, stream=stream))

    assert engine.get_status() == "paused"
    assert engine.get_position() == Position(1, 1, 1)
    lines = stream.getvalue().splitlines()
    assert "[" in lines[0]
    assert len(lines) >= book.word_count

    checkpoint = CheckpointStore(tmp_path).load(book_hash(path))
    assert checkpoint.position == Position(1, 1, 1)
    assert checkpoint.wpm == 1000
    assert checkpoint.book_path == str(path.resolve())


def test_read_book_resumes_from_checkpoint(tmp_path):
    path = _write_story(tmp_path)
    book = load_book(path)
    store = SettingsStore(tmp_path)
    asyncio.run(cli.read_book(book, path, store, wpm=1000, stream=io.StringIO()))

    stream = io.StringIO()
    engine = asyncio.run(cli.read_book(book, path, store, stream=stream))

    # Already at the last word: the first timer reaches the end straight away.
    assert engine.get_position() == Position(1, 1, 1)
    assert engine.get_wpm() == 1000
    assert "text." in stream.getvalue().splitlines()[0].replace("[", "").replace("]", "")


def test_format_library_lists_books():
    entry = Checkpoint(
        book_hash="0123456789abcdef",
        book_title="Moby Dick",
        position=Position(2, 0, 0),
        wpm=300,
        book_author="Herman Melville",
        book_path="/books/moby.epub",
        progress=0.25,
        saved_at=0.0,
    )

    lines = cli.format_library([entry]).splitlines()

    assert lines[0] == "0123456789ab  Moby Dick by Herman Melville"
    assert lines[1].startswith("    Chapter 3, 25% read, last read ")
    assert lines[2] == "    /books/moby.epub"


def test_main_library_on_empty_state(tmp_path, capsys):
    assert cli.main(["--library", "--state-dir", str(tmp_path)]) == 0
    assert capsys.readouterr().out.strip() == "No books read yet."


def test_main_library_lists_read_books(tmp_path, capsys):
    path = _write_story(tmp_path)
    asyncio.run(cli.read_book(load_book(path), path, SettingsStore(tmp_path), wpm=1000, stream=io.StringIO()))

    assert cli.main(["--library", "--state-dir", str(tmp_path)]) == 0

    out = capsys.readouterr().out
    assert out.startswith(book_hash(path)[:12])
    assert "Chapter Two" in out
    assert str(path.resolve()) in out


def test_main_forget_removes_book(tmp_path, capsys):
    path = _write_story(tmp_path)
    asyncio.run(cli.read_book(load_book(path), path, SettingsStore(tmp_path), wpm=1000, stream=io.StringIO()))
    digest = book_hash(path)

    assert cli.main(["--forget", digest[:8], "--state-dir", str(tmp_path)]) == 0

    out = capsys.readouterr().out
    assert "No books read yet." in out
    assert CheckpointStore(tmp_path).load(digest) is None


def test_main_forget_unknown_book_fails(tmp_path):
    assert cli.main(["--forget", "ffff", "--state-dir", str(tmp_path)]) == 1


def test_main_requires_book_without_library_flags(tmp_path):
    with pytest.raises(SystemExit):
        cli.main(["--state-dir", str(tmp_path)])
