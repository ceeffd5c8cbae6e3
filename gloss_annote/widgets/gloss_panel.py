# gloss_annote/widgets/gloss_panel.py
from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QColor
from PyQt5.QtWidgets import QGroupBox, QListWidget, QListWidgetItem, QVBoxLayout, QWidget

from ..domain import Task, segment_color_hex


class GlossPanel(QGroupBox):
    """
    The selected task's glosses, in order, with the color of their timeline segment.

    Emits gloss_selected(index) when a gloss is clicked.
    """
    gloss_selected = pyqtSignal(int)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__("Glosses", parent)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)

        self.list = QListWidget()
        self.list.itemClicked.connect(self._on_item_clicked)
        self.list.setCursor(Qt.PointingHandCursor)
        layout.addWidget(self.list, stretch=1)

        self.set_task(None)

    def set_task(self, task: Optional[Task]) -> None:
        self.list.clear()
        if task is None:
            item = QListWidgetItem("Select a task")
            item.setFlags(Qt.NoItemFlags)
            self.list.addItem(item)
            return
        for idx, gloss in enumerate(task.glosses):
            item = QListWidgetItem(f"{idx + 1}. {gloss}")
            item.setData(Qt.UserRole, idx)
            item.setData(Qt.DecorationRole, QColor(segment_color_hex(idx)))
            self.list.addItem(item)

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        idx = item.data(Qt.UserRole)
        if idx is not None:
            self.gloss_selected.emit(int(idx))
