# gloss_annote/widgets/timeline_editor.py
from __future__ import annotations

from typing import List, Optional

from PyQt5.QtCore import Qt, QEvent, QRect, QPoint, pyqtSignal
from PyQt5.QtGui import QColor, QPainter, QPen, QFontMetrics
from PyQt5.QtWidgets import QWidget, QScrollArea, QToolTip

from ..domain import Segment, segment_color_hex
from ..intervals import move_split, split_times
from ..timeutils import (
    SMALL_FONT_THRESHOLD,
    is_scroll_layout,
    pixels_per_second,
    time_to_x,
    timeline_content_width,
    x_to_time,
)


class _TimelineCanvas(QWidget):
    """
    Paints the segments as proportional blocks and handles split dragging.

    Idle: a click inside a block seeks to the clicked time.
    Dragging(k): started by pressing on the handle of split k; every mouse move
    applies move_split with the pixel delta converted to seconds, emits the new
    segment list and a seek to the new split time. Release always returns to
    Idle. Qt keeps delivering move/release events to the widget that received
    the press, even when the pointer leaves it.
    """
    segments_edited = pyqtSignal(object)  # List[Segment]
    seek_requested = pyqtSignal(float)    # seconds
    drag_started = pyqtSignal(int)        # split index
    drag_finished = pyqtSignal(int)       # split index

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        # Data
        self._segments: List[Segment] = []
        self._duration: float = 0.0
        self._playhead: float = 0.0

        # Styling/layout
        self._block_h = 50
        self._handle_w = 8

        # Drag state (None = Idle)
        self._drag_split: Optional[int] = None
        self._drag_origin_x: int = 0
        self._drag_origin_time: float = 0.0

        self.setMouseTracking(True)
        self.setMinimumHeight(self._block_h)
        self._cursor_mode: str = ""

    def _set_cursor_mode(self, mode: str) -> None:
        if mode == self._cursor_mode:
            return
        self._cursor_mode = mode
        if mode == "hand":
            self.setCursor(Qt.PointingHandCursor)
        elif mode == "resize":
            self.setCursor(Qt.SizeHorCursor)
        elif mode == "arrow":
            self.setCursor(Qt.ArrowCursor)
        else:
            self.unsetCursor()

    # ---------------- Public API ----------------

    def set_duration(self, duration: float) -> None:
        self._duration = max(0.0, float(duration or 0.0))
        if self._duration <= 0:
            self._drag_split = None
        self.update()

    def duration(self) -> float:
        return self._duration

    def set_segments(self, segments: List[Segment]) -> None:
        self._segments = list(segments or [])
        if self._drag_split is not None and self._drag_split >= len(self._segments) - 1:
            self._drag_split = None
        self.update()

    def segments(self) -> List[Segment]:
        return list(self._segments)

    def set_playhead(self, seconds: float) -> None:
        self._playhead = max(0.0, float(seconds or 0.0))
        self.update()

    def is_dragging(self) -> bool:
        return self._drag_split is not None

    def dragging_split(self) -> Optional[int]:
        return self._drag_split

    def is_active(self) -> bool:
        """False while there is nothing to lay out (no duration or no segments)."""
        return self._duration > 0 and bool(self._segments)

    # ---------------- Geometry helpers ----------------

    def pixels_per_second(self) -> float:
        return pixels_per_second(self.width(), self._duration)

    def _time_to_x(self, t: float) -> int:
        return int(round(time_to_x(t, self.width(), self._duration)))

    def _x_to_time(self, x: int) -> float:
        return x_to_time(x, self.width(), self._duration)

    def handle_rect(self, k: int) -> QRect:
        x = self._time_to_x(split_times(self._segments)[k])
        return QRect(x - self._handle_w // 2, 0, self._handle_w, self._block_h)

    def split_at(self, pos: QPoint) -> Optional[int]:
        """
        Index of the split handle under pos.

        Handles of collapsed segments share a pixel. Among overlapping handles
        the last one that can still move wins (its range
        [S[k].start_time, S[k+1].end_time] is not a single point), so a
        collapse at either end of the bar can be reopened.
        """
        if not self.is_active():
            return None
        hits = [k for k in range(len(self._segments) - 1) if self.handle_rect(k).contains(pos)]
        if not hits:
            return None
        movable = [k for k in hits if self._split_range(k) > 0]
        return movable[-1] if movable else hits[-1]

    def _split_range(self, k: int) -> float:
        return float(self._segments[k + 1].end_time) - float(self._segments[k].start_time)

    def block_rect(self, idx: int) -> QRect:
        seg = self._segments[idx]
        x1 = self._time_to_x(seg.start_time)
        x2 = self._time_to_x(seg.end_time)
        return QRect(x1, 0, max(0, x2 - x1), self._block_h)

    def segment_at(self, pos: QPoint) -> Optional[int]:
        if not self.is_active():
            return None
        for idx in range(len(self._segments)):
            if self.block_rect(idx).contains(pos):
                return idx
        return None

    # ---------------- Interaction (also used directly by tests) ----------------

    def begin_drag(self, k: int, x: int) -> bool:
        if not self.is_active() or not (0 <= k < len(self._segments) - 1):
            return False
        self._drag_split = int(k)
        self._drag_origin_x = int(x)
        self._drag_origin_time = float(self._segments[k].end_time)
        self.drag_started.emit(self._drag_split)
        self.update()
        return True

    def drag_to(self, x: int) -> None:
        if self._drag_split is None:
            return
        pps = self.pixels_per_second()
        if pps <= 0:
            return
        k = self._drag_split
        t = self._drag_origin_time + (int(x) - self._drag_origin_x) / pps
        self._segments = move_split(self._segments, k, t)
        self.update()
        self.segments_edited.emit(list(self._segments))
        self.seek_requested.emit(float(self._segments[k].end_time))

    def end_drag(self) -> None:
        if self._drag_split is None:
            return
        k = self._drag_split
        self._drag_split = None
        self.update()
        self.drag_finished.emit(k)

    def click_at(self, pos: QPoint) -> None:
        idx = self.segment_at(pos)
        if idx is None:
            return
        seg = self._segments[idx]
        t = self._x_to_time(pos.x())
        t = max(float(seg.start_time), min(t, float(seg.end_time)))
        self.seek_requested.emit(t)

    # ---------------- Painting ----------------

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(self.rect(), QColor("#2E2E2E"))

        if self._duration <= 0:
            if self._segments:
                painter.setPen(QPen(QColor("#9E9E9E"), 1))
                painter.drawText(self.rect(), Qt.AlignCenter, "Waiting for the video duration...")
            painter.end()
            return
        if not self._segments:
            painter.end()
            return

        font = painter.font()
        if len(self._segments) > SMALL_FONT_THRESHOLD:
            font.setPointSizeF(max(6.0, font.pointSizeF() * 0.8))
            painter.setFont(font)
        fm = QFontMetrics(font)

        for idx, seg in enumerate(self._segments):
            rect = self.block_rect(idx)
            if rect.width() <= 0:
                continue

            painter.fillRect(rect, QColor(segment_color_hex(idx)))
            painter.setPen(QPen(QColor("#FFFFFF"), 1))
            painter.drawLine(rect.right(), rect.top(), rect.right(), rect.bottom())

            text = fm.elidedText(seg.label, Qt.ElideRight, max(0, rect.width() - 6))
            if text:
                painter.drawText(rect.adjusted(3, 0, -3, 0), Qt.AlignCenter, text)

        # Split handles (outer boundaries are fixed and get none)
        for k in range(len(self._segments) - 1):
            alpha = 220 if k == self._drag_split else 90
            painter.fillRect(self.handle_rect(k), QColor(255, 255, 255, alpha))

        # Playhead
        x = self._time_to_x(min(self._playhead, self._duration))
        painter.setPen(QPen(QColor("#ff2d2d"), 2))
        painter.drawLine(x, 0, x, self._block_h)

        painter.end()

    # ---------------- Mouse events ----------------

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton or not self.is_active():
            return super().mousePressEvent(event)

        k = self.split_at(event.pos())
        if k is not None:
            self.begin_drag(k, event.globalPos().x())
            event.accept()
            return

        self.click_at(event.pos())
        event.accept()

    def mouseMoveEvent(self, event):
        if self._drag_split is not None:
            self.drag_to(event.globalPos().x())
            self._ensure_split_visible(self._drag_split)
            event.accept()
            return

        pos = event.pos()
        if self.split_at(pos) is not None:
            self._set_cursor_mode("resize")
        elif self.segment_at(pos) is not None:
            self._set_cursor_mode("hand")
        else:
            self._set_cursor_mode("arrow")
        return super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton and self._drag_split is not None:
            self.end_drag()
            event.accept()
            return
        return super().mouseReleaseEvent(event)

    def leaveEvent(self, event):
        if self._drag_split is None:
            self._set_cursor_mode("arrow")
        return super().leaveEvent(event)

    def event(self, event):
        if event.type() == QEvent.ToolTip:
            idx = self.segment_at(event.pos())
            if idx is not None:
                seg = self._segments[idx]
                QToolTip.showText(event.globalPos(), seg.label, self)
            else:
                QToolTip.hideText()
                event.ignore()
            return True
        return super().event(event)

    def _ensure_split_visible(self, k: int) -> None:
        # parent() of the canvas is the scroll area's viewport
        area = self.parent().parent() if self.parent() is not None else None
        if isinstance(area, QScrollArea) and 0 <= k < len(self._segments) - 1:
            x = self._time_to_x(self._segments[k].end_time)
            area.ensureVisible(x, self._block_h // 2, 60, 0)


class TimelineEditor(QScrollArea):
    """
    Segment timeline with draggable split points.

    Layout: up to 20 segments the canvas fits the visible width; above that
    each segment gets 60px and the view scrolls horizontally.

    Use:
      - set_duration(seconds); nothing is editable until it is > 0
      - set_segments(segments); ordered, contiguous
      - set_playhead(seconds)

    Signals are forwarded from the canvas.
    """
    segments_edited = pyqtSignal(object)
    seek_requested = pyqtSignal(float)
    drag_started = pyqtSignal(int)
    drag_finished = pyqtSignal(int)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self.setWidgetResizable(False)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAsNeeded)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setFixedHeight(72)

        self.canvas = _TimelineCanvas(self)
        self.setWidget(self.canvas)

        self.canvas.segments_edited.connect(self.segments_edited.emit)
        self.canvas.seek_requested.connect(self.seek_requested.emit)
        self.canvas.drag_started.connect(self.drag_started.emit)
        self.canvas.drag_finished.connect(self.drag_finished.emit)

        self._sync_canvas_size()

    def set_duration(self, duration: float) -> None:
        self.canvas.set_duration(duration)

    def set_segments(self, segments: List[Segment]) -> None:
        self.canvas.set_segments(segments)
        self._sync_canvas_size()

    def set_playhead(self, seconds: float) -> None:
        self.canvas.set_playhead(seconds)

    def segments(self) -> List[Segment]:
        return self.canvas.segments()

    def is_dragging(self) -> bool:
        return self.canvas.is_dragging()

    def is_scroll_layout(self) -> bool:
        return is_scroll_layout(len(self.canvas.segments()))

    def content_width(self) -> int:
        return self.canvas.width()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._sync_canvas_size()

    def _sync_canvas_size(self) -> None:
        n = len(self.canvas.segments())
        width = timeline_content_width(n, self.viewport().width())
        self.canvas.setFixedSize(width, self.canvas.minimumHeight())
