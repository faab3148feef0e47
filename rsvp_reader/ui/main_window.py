"""Qt GUI for RSVP Reader."""

from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Callable, List, Optional

from PySide6.QtCore import QThread, Qt, QTimer, Signal, Slot
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QSpinBox,
    QStackedWidget,
    QStatusBar,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)

from ..checkpoints import CheckpointStore, book_hash, restore_position
from ..engine import PlaybackEngine, WordInfo
from ..ingest import SUPPORTED_EXTENSIONS, Book, load_book
from ..position import words_before
from ..settings import SettingsStore
from ..timing import MAX_FREQUENCY_DELAY_FACTOR, MAX_LENGTH_DELAY_FACTOR, MAX_WPM, MIN_WPM, WPM_STEP, clamp_wpm
from ..wordlist import FrequencyTable
from .resources import BACKGROUND, DIM, FOREGROUND, HIGHLIGHT, app_icon
from .scheduler import QtScheduler

LOGGER = logging.getLogger(__name__)

FILE_FILTER = "Books (*.epub *.pdf *.txt *.md *.markdown);;All files (*)"
PIXELS_PER_FONT_UNIT = 16


class LoadWorker(QThread):
    """Extract a book off the GUI thread."""

    loaded = Signal(object, str, str)
    error = Signal(str)

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path

    def run(self) -> None:  # pragma: no cover - executed in thread
        try:
            book = load_book(self.path)
            digest = book_hash(self.path)
        except Exception as exc:
            LOGGER.exception("Failed to load %s", self.path)
            self.error.emit(str(exc))
            return
        self.loaded.emit(book, digest, str(self.path.resolve()))


def word_html(info: WordInfo) -> str:
    text = info.word.text
    offset = min(info.word.recognition_offset, max(0, len(text) - 1))
    left = html.escape(text[:offset])
    pivot = html.escape(text[offset : offset + 1])
    right = html.escape(text[offset + 1 :])
    return f'{left}<span style="color:{HIGHLIGHT}">{pivot}</span>{right}'


def paragraph_html(book: Book, info: WordInfo) -> str:
    position = info.position
    paragraph = book.chapters[position.chapter_index].paragraphs[position.paragraph_index]
    parts = []
    for index, word in enumerate(paragraph.words):
        escaped = html.escape(word.text)
        if index == position.word_index:
            escaped = f'<span style="color:{HIGHLIGHT}">{escaped}</span>'
        parts.append(escaped)
    return f'<p style="color:{FOREGROUND}">{" ".join(parts)}</p>'


class ReaderWindow(QMainWindow):
    """Main application window."""

    def __init__(self, settings: Optional[SettingsStore] = None) -> None:
        super().__init__()
        self.setAcceptDrops(True)
        self.settings = settings or SettingsStore()
        self.checkpoints = CheckpointStore(self.settings.state_dir)
        self.frequencyTable = FrequencyTable.from_file(self.settings.current.wordlist_path)
        self.engine = PlaybackEngine(
            QtScheduler(self),
            settings_provider=self.settings.timing_settings,
            frequency_lookup=lambda word: self.frequencyTable.bucket_multiplier(word),
            wpm=self.settings.current.wpm,
        )
        self._book_hash: Optional[str] = None
        self._book_path: Optional[str] = None
        self._worker: Optional[LoadWorker] = None
        self._unsubscribe: List[Callable[[], None]] = []
        self._build_ui()
        self.setWindowIcon(app_icon())
        self._configure_widgets()
        self._bind_shortcuts()
        self._apply_font_size()
        self._refresh_library()

    # ----- UI setup -----
    def _build_ui(self) -> None:
        self.setWindowTitle("RSVP Reader")
        central = QWidget(self)
        self.setCentralWidget(central)
        central.setStyleSheet(f"background:{BACKGROUND}; color:{FOREGROUND};")

        root_layout = QVBoxLayout(central)

        header = QHBoxLayout()
        self.openButton = QPushButton("Open…", central)
        self.titleLabel = QLabel("No book loaded", central)
        self.chapterCombo = QComboBox(central)
        self.chapterCombo.setMinimumWidth(240)
        header.addWidget(self.openButton)
        header.addWidget(self.titleLabel, 1)
        header.addWidget(self.chapterCombo)
        root_layout.addLayout(header)

        self.viewStack = QStackedWidget(central)
        self.wordLabel = QLabel("", self.viewStack)
        self.wordLabel.setAlignment(Qt.AlignCenter)
        self.wordLabel.setTextFormat(Qt.RichText)
        self.paragraphView = QTextBrowser(self.viewStack)
        self.viewStack.addWidget(self.wordLabel)
        self.viewStack.addWidget(self.paragraphView)
        root_layout.addWidget(self.viewStack, 1)

        self.contextLabel = QLabel("", central)
        self.contextLabel.setStyleSheet(f"color:{DIM};")
        self.contextLabel.setAlignment(Qt.AlignCenter)
        root_layout.addWidget(self.contextLabel)

        control_row = QHBoxLayout()
        self.prevButton = QPushButton("◀", central)
        self.playButton = QPushButton("Play", central)
        self.nextButton = QPushButton("▶", central)
        self.restartButton = QPushButton("Restart paragraph", central)
        self.viewButton = QPushButton("Paragraph view", central)
        for button in (self.prevButton, self.playButton, self.nextButton, self.restartButton, self.viewButton):
            control_row.addWidget(button)
        control_row.addStretch(1)

        self.wpmSpin = QSpinBox(central)
        self.wpmSpin.setRange(MIN_WPM, MAX_WPM)
        self.wpmSpin.setSingleStep(WPM_STEP)
        self.wpmSpin.setSuffix(" wpm")
        self.wpmSpin.setValue(self.engine.get_wpm())
        control_row.addWidget(self.wpmSpin)
        root_layout.addLayout(control_row)

        timing_group = QGroupBox("Timing", central)
        timing_layout = QFormLayout(timing_group)
        current = self.settings.current

        self.lengthCheck = QCheckBox("Slow down on long words", timing_group)
        self.lengthCheck.setChecked(current.length_delay_enabled)
        self.lengthFactorSpin = QDoubleSpinBox(timing_group)
        self.lengthFactorSpin.setRange(0.0, MAX_LENGTH_DELAY_FACTOR)
        self.lengthFactorSpin.setSingleStep(0.05)
        self.lengthFactorSpin.setValue(current.length_delay_factor)
        timing_layout.addRow(self.lengthCheck, self.lengthFactorSpin)

        self.frequencyCheck = QCheckBox("Slow down on uncommon words", timing_group)
        self.frequencyCheck.setChecked(current.frequency_delay_enabled)
        self.frequencyFactorSpin = QDoubleSpinBox(timing_group)
        self.frequencyFactorSpin.setRange(0.0, MAX_FREQUENCY_DELAY_FACTOR)
        self.frequencyFactorSpin.setSingleStep(0.05)
        self.frequencyFactorSpin.setValue(current.frequency_delay_factor)
        timing_layout.addRow(self.frequencyCheck, self.frequencyFactorSpin)

        wordlist_row = QHBoxLayout()
        self.wordlistLabel = QLabel(current.wordlist_path or "No word list", timing_group)
        self.wordlistButton = QPushButton("Word list…", timing_group)
        wordlist_row.addWidget(self.wordlistLabel, 1)
        wordlist_row.addWidget(self.wordlistButton)
        timing_layout.addRow("Frequency list", wordlist_row)
        root_layout.addWidget(timing_group)

        library_group = QGroupBox("Library", central)
        library_layout = QVBoxLayout(library_group)
        self.libraryList = QListWidget(library_group)
        self.libraryList.setAlternatingRowColors(True)
        self.libraryList.setMaximumHeight(120)
        library_layout.addWidget(self.libraryList)
        library_buttons = QHBoxLayout()
        self.openLibraryButton = QPushButton("Open Selected", library_group)
        self.forgetBookButton = QPushButton("Forget Selected", library_group)
        library_buttons.addWidget(self.openLibraryButton)
        library_buttons.addWidget(self.forgetBookButton)
        library_buttons.addStretch(1)
        library_layout.addLayout(library_buttons)
        root_layout.addWidget(library_group)

        self.progressBar = QProgressBar(central)
        self.progressBar.setRange(0, 100)
        root_layout.addWidget(self.progressBar)

        self.statusbar = QStatusBar(self)
        self.setStatusBar(self.statusbar)

    def _configure_widgets(self) -> None:
        self.openButton.clicked.connect(self._open_book_dialog)
        self.playButton.clicked.connect(self.engine.toggle)
        self.prevButton.clicked.connect(self.engine.prev_word)
        self.nextButton.clicked.connect(self.engine.next_word)
        self.restartButton.clicked.connect(self.engine.restart_paragraph)
        self.viewButton.clicked.connect(self.engine.toggle_view_mode)
        self.chapterCombo.activated.connect(self.engine.go_to_chapter)
        self.wpmSpin.valueChanged.connect(self._on_wpm_changed)
        self.lengthCheck.toggled.connect(self._on_timing_changed)
        self.lengthFactorSpin.valueChanged.connect(self._on_timing_changed)
        self.frequencyCheck.toggled.connect(self._on_timing_changed)
        self.frequencyFactorSpin.valueChanged.connect(self._on_timing_changed)
        self.wordlistButton.clicked.connect(self._choose_wordlist)
        self.libraryList.itemDoubleClicked.connect(self._open_library_item)
        self.openLibraryButton.clicked.connect(self._open_selected_book)
        self.forgetBookButton.clicked.connect(self._forget_selected_book)
        self.progressBar.setValue(0)

        self._unsubscribe = [
            self.engine.on_word_change(self._on_word_changed),
            self.engine.on_status_change(self._on_status_changed),
            self.engine.on_view_mode_change(self._on_view_mode_changed),
        ]

    def _bind_shortcuts(self) -> None:
        bindings = {
            "Space": self.engine.toggle,
            "Left": self.engine.prev_word,
            "Right": self.engine.next_word,
            "R": self.engine.restart_paragraph,
            "[": lambda: self._adjust_wpm(-WPM_STEP),
            "]": lambda: self._adjust_wpm(WPM_STEP),
            "PgUp": self.engine.prev_chapter,
            "PgDown": self.engine.next_chapter,
            "P": self.engine.toggle_view_mode,
        }
        for key, handler in bindings.items():
            shortcut = QShortcut(QKeySequence(key), self)
            shortcut.activated.connect(handler)

    def _apply_font_size(self) -> None:
        pixels = int(self.settings.current.font_size * PIXELS_PER_FONT_UNIT)
        font = self.wordLabel.font()
        font.setPixelSize(pixels)
        font.setBold(True)
        self.wordLabel.setFont(font)

    # ----- Book loading -----
    def _open_book_dialog(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open book", str(Path.home()), FILE_FILTER)
        if path:
            self.open_book(Path(path))

    def open_book(self, path: Path) -> None:
        if self._worker is not None:
            self.statusbar.showMessage("Still loading the previous book", 3000)
            return
        self.engine.pause()
        self._save_checkpoint()
        self.statusbar.showMessage(f"Loading {path.name}…")
        self._worker = LoadWorker(path)
        self._worker.loaded.connect(self._on_book_loaded)
        self._worker.error.connect(self._on_load_error)
        self._worker.start()

    @Slot(object, str, str)
    def _on_book_loaded(self, book: Book, digest: str, path: str = "") -> None:
        self._worker = None
        # The reader may have resumed the previous book while this one loaded.
        self.engine.pause()
        self._save_checkpoint()
        self._book_hash = None
        self.engine.load_book(book)
        self._book_hash = digest
        self._book_path = path or None
        self.titleLabel.setText(f"{book.title} by {book.author}")
        self.chapterCombo.clear()
        self.chapterCombo.addItems([chapter.title for chapter in book.chapters])

        checkpoint = self.checkpoints.load(digest)
        if checkpoint is not None:
            saved = checkpoint.position
            was_clamped = restore_position(self.engine, checkpoint)
            self.wpmSpin.setValue(self.engine.get_wpm())
            if was_clamped:
                restored = self.engine.get_position()
                message = (
                    f"Your saved position (chapter {saved.chapter_index + 1}) was out of bounds.\n\n"
                    f"The book only has {len(book.chapters)} chapters. Restored to chapter "
                    f"{restored.chapter_index + 1} instead.\n\n"
                    "This can happen if the book's structure changed."
                )
                QTimer.singleShot(100, lambda: QMessageBox.information(self, "Position restored", message))
        # Record the book in the library right away.
        self._save_checkpoint()
        self.statusbar.showMessage(f"Loaded {book.title}", 3000)

    @Slot(str)
    def _on_load_error(self, message: str) -> None:
        self._worker = None
        self.statusbar.clearMessage()
        QMessageBox.critical(self, "Failed to load book", message)

    def _save_checkpoint(self) -> None:
        if self._book_hash is None:
            return
        try:
            self.checkpoints.save_engine(self._book_hash, self.engine, self._book_path)
        except OSError as exc:
            LOGGER.error("Failed to save position: %s", exc)
            return
        self._refresh_library()

    # ----- Library -----
    def _refresh_library(self) -> None:
        self.libraryList.clear()
        for entry in self.checkpoints.list_books():
            author = entry.book_author or "Unknown"
            where = entry.chapter_title or f"Chapter {entry.position.chapter_index + 1}"
            item = QListWidgetItem(f"{entry.book_title} by {author} · {where} · {entry.progress:.0%}")
            item.setToolTip(entry.book_path or "File location unknown")
            item.setData(Qt.UserRole, entry.book_hash)
            self.libraryList.addItem(item)

    def _selected_library_hash(self) -> Optional[str]:
        item = self.libraryList.currentItem()
        if item is None:
            return None
        return item.data(Qt.UserRole)

    def _open_selected_book(self) -> None:
        item = self.libraryList.currentItem()
        if item is not None:
            self._open_library_item(item)

    def _open_library_item(self, item: QListWidgetItem) -> None:
        checkpoint = self.checkpoints.load(item.data(Qt.UserRole))
        if checkpoint is None:
            self._refresh_library()
            return
        if not checkpoint.book_path or not Path(checkpoint.book_path).exists():
            QMessageBox.warning(
                self,
                "Book not found",
                f"The file for '{checkpoint.book_title}' is no longer at its saved location.",
            )
            return
        self.open_book(Path(checkpoint.book_path))

    def _forget_selected_book(self) -> None:
        digest = self._selected_library_hash()
        if digest is None:
            return
        checkpoint = self.checkpoints.load(digest)
        title = checkpoint.book_title if checkpoint is not None else "this book"
        answer = QMessageBox.question(
            self,
            "Forget book",
            f"Remove '{title}' and its saved position from the library?",
        )
        if answer != QMessageBox.Yes:
            return
        self.checkpoints.delete(digest)
        if digest == self._book_hash:
            self._book_hash = None
            self._book_path = None
        self._refresh_library()

    # ----- Engine notifications -----
    def _on_word_changed(self, info: Optional[WordInfo]) -> None:
        book = self.engine.get_book()
        if info is None or book is None:
            self.wordLabel.setText("")
            self.contextLabel.setText("")
            return
        position = info.position
        self.wordLabel.setText(word_html(info))
        if self.engine.get_view_mode() == "paragraph":
            self.paragraphView.setHtml(paragraph_html(book, info))
        self.contextLabel.setText(
            f"{info.chapter_title} · paragraph {position.paragraph_index + 1}/"
            f"{info.total_paragraphs_in_chapter} · word {position.word_index + 1}/"
            f"{info.total_words_in_paragraph}"
        )
        if self.chapterCombo.currentIndex() != position.chapter_index:
            self.chapterCombo.setCurrentIndex(position.chapter_index)
        total = max(1, book.word_count)
        self.progressBar.setValue(100 * words_before(book, position) // total)

    def _on_status_changed(self, status: str) -> None:
        self.playButton.setText("Pause" if status == "playing" else "Play")
        if status == "paused":
            self._save_checkpoint()

    def _on_view_mode_changed(self, mode: str) -> None:
        if mode == "paragraph":
            self.viewStack.setCurrentWidget(self.paragraphView)
            self.viewButton.setText("RSVP view")
            info = self.engine.get_current_word_info()
            book = self.engine.get_book()
            if info is not None and book is not None:
                self.paragraphView.setHtml(paragraph_html(book, info))
        else:
            self.viewStack.setCurrentWidget(self.wordLabel)
            self.viewButton.setText("Paragraph view")

    # ----- Settings -----
    def _adjust_wpm(self, delta: int) -> None:
        self.wpmSpin.setValue(clamp_wpm(self.engine.get_wpm() + delta))

    def _on_wpm_changed(self, value: int) -> None:
        wpm = clamp_wpm(value)
        self.engine.set_wpm(wpm)
        self.settings.update(wpm=wpm)

    def _on_timing_changed(self, *_args) -> None:
        self.settings.update(
            length_delay_enabled=self.lengthCheck.isChecked(),
            length_delay_factor=round(self.lengthFactorSpin.value(), 2),
            frequency_delay_enabled=self.frequencyCheck.isChecked(),
            frequency_delay_factor=round(self.frequencyFactorSpin.value(), 2),
        )

    def _choose_wordlist(self) -> None:
        path_str, _ = QFileDialog.getOpenFileName(
            self,
            "Choose ranked word list",
            str(Path.home()),
            "Text files (*.txt);;All files (*)",
        )
        if not path_str:
            return
        table = FrequencyTable.from_file(path_str)
        if not len(table):
            QMessageBox.warning(self, "Word list", "The word list is empty or unreadable.")
            return
        self.frequencyTable = table
        self.settings.update(wordlist_path=path_str)
        self.wordlistLabel.setText(path_str)
        self.statusbar.showMessage(f"Loaded {len(table)} words", 4000)

    # ----- Window events -----
    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.engine.pause()
        self._save_checkpoint()
        self.engine.close()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        try:
            self.settings.save()
        except OSError as exc:
            LOGGER.error("Failed to save settings: %s", exc)
        super().closeEvent(event)

    def dragEnterEvent(self, event) -> None:  # type: ignore[override]
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            super().dragEnterEvent(event)

    def dropEvent(self, event) -> None:  # type: ignore[override]
        for url in event.mimeData().urls():
            local_path = url.toLocalFile()
            if local_path and Path(local_path).suffix.lower() in SUPPORTED_EXTENSIONS:
                self.open_book(Path(local_path))
                event.acceptProposedAction()
                return
        super().dropEvent(event)


__all__ = ["ReaderWindow"]
