"""Application entry point for the RSVP Reader desktop window.

This module supports both ``python -m rsvp_reader.app`` and direct execution
via ``python rsvp_reader/app.py``. The latter path leaves ``__package__`` as
``None`` and the relative imports would normally fail, so ``sys.path`` is
patched in that scenario before importing the window class.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

if __package__ in {None, ""}:  # pragma: no cover - executed when run as a script
    package_root = Path(__file__).resolve().parent.parent
    if str(package_root) not in sys.path:
        sys.path.insert(0, str(package_root))
    from rsvp_reader.ui.main_window import ReaderWindow
else:  # pragma: no cover - exercised when run as a module
    from .ui.main_window import ReaderWindow


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    app = QApplication(sys.argv)
    window = ReaderWindow()
    window.resize(960, 640)
    window.show()
    for argument in app.arguments()[1:]:
        path = Path(argument)
        if path.exists():
            window.open_book(path)
            break
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
