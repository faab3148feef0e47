import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

pytest.importorskip("PySide6")
pytest.importorskip("pytestqt")

from PySide6.QtCore import Qt  # noqa: E402
from PySide6.QtWidgets import QMessageBox  # noqa: E402

from rsvp_reader.position import Position  # noqa: E402
from rsvp_reader.settings import SettingsStore  # noqa: E402
from rsvp_reader.ui.main_window import ReaderWindow  # noqa: E402


@pytest.fixture
def window(qtbot, tmp_path):
    widget = ReaderWindow(settings=SettingsStore(tmp_path))
    qtbot.addWidget(widget)
    return widget


def _library_rows(window):
    items = [window.libraryList.item(row) for row in range(window.libraryList.count())]
    return {item.data(Qt.UserRole): item.text() for item in items}


def test_loading_next_book_while_playing_keeps_checkpoints_apart(window, make_book, tmp_path):
    old = make_book([["one two three four five"]], title="Old")
    new = make_book([["six seven"]], title="New")
    window._on_book_loaded(old, "oldhash", str(tmp_path / "old.txt"))
    window.engine.set_position(Position(0, 0, 3))
    window.engine.play()

    window._on_book_loaded(new, "newhash", str(tmp_path / "new.txt"))

    old_checkpoint = window.checkpoints.load("oldhash")
    new_checkpoint = window.checkpoints.load("newhash")
    assert old_checkpoint.book_title == "Old"
    assert old_checkpoint.position == Position(0, 0, 3)
    assert old_checkpoint.book_path == str(tmp_path / "old.txt")
    assert new_checkpoint.book_title == "New"
    assert new_checkpoint.position == Position(0, 0, 0)
    assert window.engine.get_book() is new
    assert window.engine.get_status() == "ready"


def test_reopening_book_restores_saved_position(window, make_book):
    book = make_book([["one two three", "four five"]], title="Resume")
    window._on_book_loaded(book, "resumehash", "")
    window.engine.set_position(Position(0, 1, 1))
    window.engine.play()
    window.engine.pause()

    window._on_book_loaded(make_book([["other"]], title="Other"), "otherhash", "")
    window._on_book_loaded(book, "resumehash", "")

    assert window.engine.get_position() == Position(0, 1, 1)


def test_library_lists_known_books(window, make_book):
    window._on_book_loaded(make_book([["alpha beta"]], title="Alpha"), "aaa", "")
    window._on_book_loaded(make_book([["gamma"]], title="Gamma"), "bbb", "")

    rows = _library_rows(window)

    assert set(rows) == {"aaa", "bbb"}
    assert rows["aaa"].startswith("Alpha by Tester")
    assert rows["bbb"].startswith("Gamma by Tester")


def test_forget_selected_book_removes_it(window, make_book, monkeypatch):
    window._on_book_loaded(make_book([["alpha beta"]], title="Alpha"), "aaa", "")
    window._on_book_loaded(make_book([["gamma"]], title="Gamma"), "bbb", "")
    monkeypatch.setattr(QMessageBox, "question", lambda *args, **kwargs: QMessageBox.Yes)
    row = list(_library_rows(window)).index("aaa")
    window.libraryList.setCurrentRow(row)

    window._forget_selected_book()

    assert window.checkpoints.load("aaa") is None
    assert set(_library_rows(window)) == {"bbb"}


def test_opening_library_entry_with_missing_file_warns(window, make_book, monkeypatch, tmp_path):
    warnings = []
    monkeypatch.setattr(QMessageBox, "warning", lambda *args, **kwargs: warnings.append(args))
    window._on_book_loaded(make_book([["alpha"]], title="Gone"), "gone", str(tmp_path / "gone.txt"))
    window.libraryList.setCurrentRow(0)

    window._open_selected_book()

    assert len(warnings) == 1
    assert window._worker is None
