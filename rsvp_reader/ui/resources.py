"""Embedded resources for the RSVP Reader GUI."""

from __future__ import annotations

from functools import lru_cache

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QFont, QIcon, QPainter, QPixmap

BACKGROUND = "#121212"
FOREGROUND = "#e0e0e0"
HIGHLIGHT = "#ff5555"
DIM = "#555555"


@lru_cache(maxsize=1)
def app_icon() -> QIcon:
    """Return a procedurally drawn application icon.

    A dark rounded square with a bright vertical fixation mark, the guide the
    reader's eye locks onto.
    """

    size = 96
    pixmap = QPixmap(size, size)
    pixmap.fill(Qt.transparent)

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing)
    painter.setPen(QColor(BACKGROUND))
    painter.setBrush(QColor(BACKGROUND))
    painter.drawRoundedRect(QRectF(0, 0, size, size), size * 0.2, size * 0.2)

    painter.setPen(QColor(HIGHLIGHT))
    painter.setBrush(QColor(HIGHLIGHT))
    painter.drawRect(QRectF(size * 0.47, size * 0.14, size * 0.06, size * 0.16))
    painter.drawRect(QRectF(size * 0.47, size * 0.70, size * 0.06, size * 0.16))

    font = QFont("Arial")
    font.setPixelSize(int(size * 0.34))
    font.setBold(True)
    painter.setFont(font)
    painter.setPen(QColor(FOREGROUND))
    painter.drawText(QRectF(0, 0, size, size), Qt.AlignCenter, "Aa")
    painter.end()

    return QIcon(pixmap)


__all__ = ["BACKGROUND", "DIM", "FOREGROUND", "HIGHLIGHT", "app_icon"]
