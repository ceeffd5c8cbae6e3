# gloss_annote/widgets/task_list.py
from __future__ import annotations

from typing import List, Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QBrush, QColor
from PyQt5.QtWidgets import (
    QGroupBox,
    QLabel,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from ..domain import STATUS_DISPLAY, Task, TaskCategory, status_color_hex


class TaskListPanel(QGroupBox):
    """
    Left panel: categories with their tasks and a coloured status column.

    Emits task_selected(task_id) when the user picks a task row.
    """
    task_selected = pyqtSignal(str)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__("Tasks", parent)

        self._categories: List[TaskCategory] = []
        self._selected_id: Optional[str] = None
        self._expanded: set = set()

        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)

        self.tree = QTreeWidget()
        self.tree.setColumnCount(2)
        self.tree.setHeaderLabels(["Video", "Status"])
        self.tree.setRootIsDecorated(True)
        self.tree.itemClicked.connect(self._on_item_clicked)
        self.tree.itemExpanded.connect(lambda it: self._expanded.add(it.text(0)))
        self.tree.itemCollapsed.connect(lambda it: self._expanded.discard(it.text(0)))
        layout.addWidget(self.tree, stretch=1)

        self.empty_label = QLabel("No tasks available.")
        self.empty_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.empty_label)
        self.empty_label.hide()

    # ---------------- Public API ----------------

    def set_categories(self, categories: List[TaskCategory]) -> None:
        first_load = not self._categories
        self._categories = list(categories or [])
        if first_load and self._categories:
            self._expanded.add(self._categories[0].name)
        self.refresh()

    def set_selected_task(self, task_id: Optional[str]) -> None:
        self._selected_id = task_id
        parent = self._category_of(task_id)
        if parent:
            self._expanded.add(parent)
        self.refresh()

    def refresh(self) -> None:
        self.tree.blockSignals(True)
        try:
            self.tree.clear()
            for cat in self._categories:
                cat_item = QTreeWidgetItem([cat.name, ""])
                cat_item.setFlags(Qt.ItemIsEnabled)
                self.tree.addTopLevelItem(cat_item)
                for task in cat.tasks:
                    cat_item.addChild(self._task_item(task))
                cat_item.setExpanded(cat.name in self._expanded)
            self.tree.resizeColumnToContents(1)
        finally:
            self.tree.blockSignals(False)
        self.empty_label.setVisible(not self._categories)
        self.tree.setVisible(bool(self._categories))

    # ---------------- Internals ----------------

    def _task_item(self, task: Task) -> QTreeWidgetItem:
        item = QTreeWidgetItem([task.video, STATUS_DISPLAY.get(task.status, task.status)])
        item.setData(0, Qt.UserRole, task.id)
        item.setForeground(1, QBrush(QColor(status_color_hex(task.status))))
        item.setToolTip(0, ", ".join(task.glosses))
        if task.id == self._selected_id:
            item.setSelected(True)
        return item

    def _category_of(self, task_id: Optional[str]) -> Optional[str]:
        for cat in self._categories:
            if any(t.id == task_id for t in cat.tasks):
                return cat.name
        return None

    def _on_item_clicked(self, item: QTreeWidgetItem, _column: int) -> None:
        task_id = item.data(0, Qt.UserRole)
        if not task_id:
            # category row: toggle
            item.setExpanded(not item.isExpanded())
            return
        self._selected_id = str(task_id)
        self.task_selected.emit(str(task_id))
