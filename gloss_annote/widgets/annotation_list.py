# gloss_annote/widgets/annotation_list.py
from __future__ import annotations

from typing import List, Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtWidgets import (
    QAbstractItemView,
    QGroupBox,
    QHeaderView,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from ..domain import Segment
from ..timeutils import format_seconds


TABLE_COLUMNS = ["gloss", "start", "end", ""]


class AnnotationListPanel(QGroupBox):
    """
    Segments of the selected task: the timeline edits while there are any,
    otherwise what the Store holds. Each row has a Play button for its range.

    Emits play_segment(start_seconds, end_seconds).
    """
    play_segment = pyqtSignal(float, float)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__("Annotations", parent)

        self._segments: List[Segment] = []

        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)

        self.table = QTableWidget(0, len(TABLE_COLUMNS))
        self.table.setHorizontalHeaderLabels(TABLE_COLUMNS)
        self.table.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        self.table.verticalHeader().setVisible(False)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.table.setSelectionMode(QAbstractItemView.SingleSelection)
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.cellDoubleClicked.connect(lambda row, _col: self._play_row(row))
        layout.addWidget(self.table, stretch=1)

    def set_segments(self, segments: List[Segment]) -> None:
        self._segments = list(segments or [])
        self.refresh()

    def segments(self) -> List[Segment]:
        return list(self._segments)

    def refresh(self) -> None:
        self.table.setRowCount(0)
        for row, seg in enumerate(self._segments):
            self.table.insertRow(row)
            self.table.setItem(row, 0, QTableWidgetItem(seg.label))
            for col, value in ((1, seg.start_time), (2, seg.end_time)):
                it = QTableWidgetItem(f"{format_seconds(value)}s")
                it.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
                self.table.setItem(row, col, it)

            btn = QPushButton("Play")
            btn.setCursor(Qt.PointingHandCursor)
            btn.setToolTip("Play this segment")
            btn.clicked.connect(lambda _checked=False, r=row: self._play_row(r))
            self.table.setCellWidget(row, 3, btn)

    def _play_row(self, row: int) -> None:
        if 0 <= row < len(self._segments):
            seg = self._segments[row]
            self.play_segment.emit(float(seg.start_time), float(seg.end_time))
