# gloss_annote/widgets/busy_overlay.py
from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import Qt, QEvent
from PyQt5.QtGui import QColor, QPainter
from PyQt5.QtWidgets import QApplication, QWidget


class BusyOverlay(QWidget):
    """
    Translucent cover over its parent that swallows all mouse/keyboard input
    while a save/delete round-trip is in flight.
    """

    def __init__(self, parent: QWidget):
        super().__init__(parent)
        self._text = ""
        self.setAttribute(Qt.WA_NoSystemBackground, True)
        self.setFocusPolicy(Qt.StrongFocus)
        parent.installEventFilter(self)
        self.hide()

    def begin(self, text: str = "Saving...") -> None:
        self._text = text
        self.setGeometry(self.parent().rect())
        self.raise_()
        self.show()
        self.setFocus()
        QApplication.setOverrideCursor(Qt.WaitCursor)
        # Paint the overlay before the caller blocks on the network
        QApplication.processEvents()

    def end(self) -> None:
        if self.isVisible():
            QApplication.restoreOverrideCursor()
        self.hide()

    def is_busy(self) -> bool:
        return self.isVisible()

    def eventFilter(self, obj, event):
        if obj is self.parent() and event.type() == QEvent.Resize:
            self.setGeometry(self.parent().rect())
        return super().eventFilter(obj, event)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(0, 0, 0, 140))
        painter.setPen(QColor("#FFFFFF"))
        painter.drawText(self.rect(), Qt.AlignCenter, self._text)
        painter.end()

    # Swallow input
    def mousePressEvent(self, event):
        event.accept()

    def mouseReleaseEvent(self, event):
        event.accept()

    def mouseDoubleClickEvent(self, event):
        event.accept()

    def keyPressEvent(self, event):
        event.accept()

    def wheelEvent(self, event):
        event.accept()
