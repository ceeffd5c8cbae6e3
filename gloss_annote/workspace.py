# gloss_annote/workspace.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .domain import (
    STATUS_COMPLETE,
    STATUS_PARTIAL,
    STATUS_PENDING,
    Segment,
    Task,
    TaskCategory,
    find_task,
    segments_for_task,
)
from .intervals import (
    even_split,
    move_split,
    snap_to_duration,
    sorted_segments,
    validate_partition,
    with_new_ids,
)
from .logger import logger


RESET_DESTROYS_TEXT = (
    "Delete all annotation records of this task? "
    "The task status will be reset to \"Pending\". This cannot be undone."
)
RESET_STATUS_ONLY_TEXT = "Reset the status of this task to \"Pending\"?"


@dataclass
class WorkspaceState:
    """
    Editing session for one task.

    editing holds the segments shown in the timeline (possibly unsaved);
    saved mirrors what the Store holds for the task.
    """
    task: Optional[Task] = None
    editing: List[Segment] = field(default_factory=list)
    saved: List[Segment] = field(default_factory=list)
    duration: float = 0.0
    dirty: bool = False

    # task id for which the "synthesize a default split?" decision was already made
    synthesis_checked_for: Optional[str] = None

    def has_task(self) -> bool:
        return self.task is not None


class AnnotationWorkspace:
    """
    Owns the editing set of the selected task and drives the Store calls.

    store must provide delete_task_annotations(task_id),
    import_annotations(segments) and update_task_status(task_id, status)
    (see StoreClient). Store errors propagate to the caller unchanged.
    """

    def __init__(self, store):
        self.store = store
        self.state = WorkspaceState()

    # ---------------- Selection / loading ----------------

    @property
    def task(self) -> Optional[Task]:
        return self.state.task

    @property
    def segments(self) -> List[Segment]:
        return list(self.state.editing)

    @property
    def dirty(self) -> bool:
        return self.state.dirty

    def display_segments(self) -> List[Segment]:
        """What the annotation list shows: the editing set, or the saved set when nothing is being edited."""
        return list(self.state.editing or self.state.saved)

    def select_task(self, task: Optional[Task], saved_segments: List[Segment]) -> None:
        """Start a fresh session; any unsaved edits of the previous task are dropped."""
        saved = sorted_segments(segments_for_task(saved_segments, task.id if task else None))
        self.state = WorkspaceState(task=task, saved=saved, editing=list(saved))
        if task is not None and saved:
            self.state.synthesis_checked_for = task.id

    def set_duration(self, duration: float) -> None:
        """
        Video duration became known. Without saved segments this synthesizes an
        even split of the task's glosses, once per task and never for a task
        already marked complete.
        """
        self.state.duration = max(0.0, float(duration or 0.0))
        self._maybe_synthesize()

    def _maybe_synthesize(self) -> None:
        task = self.state.task
        if task is None or self.state.duration <= 0:
            return
        if self.state.synthesis_checked_for == task.id:
            return
        self.state.synthesis_checked_for = task.id

        if self.state.saved or task.is_complete:
            return
        self.state.editing = even_split(task.id, task.glosses, self.state.duration)
        logger.info("Generated %d default segments for task %s", len(self.state.editing), task.id)

    # ---------------- Editing ----------------

    def edit(self, segments: List[Segment]) -> None:
        """Replace the editing set with an edited copy (e.g. from the timeline)."""
        if self.state.task is None:
            return
        self.state.editing = list(segments)
        self._mark_dirty()

    def move_split(self, k: int, t: float) -> List[Segment]:
        self.edit(move_split(self.state.editing, k, t))
        return self.segments

    def _mark_dirty(self) -> None:
        """
        Flag unsaved edits and move a pending task to "partial". The local
        status only changes once the Store accepted it, so a failed request is
        sent again on the next edit.
        """
        self.state.dirty = True
        task = self.state.task
        if task is not None and task.status == STATUS_PENDING:
            self.store.update_task_status(task.id, STATUS_PARTIAL)
            task.status = STATUS_PARTIAL

    # ---------------- Save / reset ----------------

    def can_save(self) -> bool:
        return self.state.task is not None and self.state.dirty and bool(self.state.editing)

    def save(self) -> List[Segment]:
        """
        Replace the persisted segments of the task with the editing set:
        delete all, import with fresh ids, then mark complete. A failing call
        stops the sequence (the status is not touched after a failed import).
        """
        task = self.state.task
        if task is None:
            raise ValueError("no task selected")
        if not self.state.editing:
            raise ValueError("nothing to save")
        editing = self.state.editing
        if self.state.duration > 0:
            editing = snap_to_duration(editing, self.state.duration)
            validate_partition(editing, self.state.duration)

        fresh = with_new_ids(editing)
        self.store.delete_task_annotations(task.id)
        self.store.import_annotations(fresh)
        self.store.update_task_status(task.id, STATUS_COMPLETE)

        task.status = STATUS_COMPLETE
        self.state.editing = list(fresh)
        self.state.saved = list(fresh)
        self.state.dirty = False
        logger.info("Saved %d segments for task %s", len(fresh), task.id)
        return list(fresh)

    def reset_destroys_data(self) -> bool:
        task = self.state.task
        return bool(self.state.saved) or (task is not None and task.is_complete)

    def reset_confirmation_text(self) -> str:
        return RESET_DESTROYS_TEXT if self.reset_destroys_data() else RESET_STATUS_ONLY_TEXT

    def reset(self) -> None:
        """Clear persisted segments (if any) and send the task back to pending."""
        task = self.state.task
        if task is None:
            raise ValueError("no task selected")
        if self.state.saved:
            self.store.delete_task_annotations(task.id)
        self.store.update_task_status(task.id, STATUS_PENDING)

        task.status = STATUS_PENDING
        self.state.saved = []
        self.state.editing = []
        self.state.dirty = False
        self.state.synthesis_checked_for = None
        self._maybe_synthesize()
        logger.info("Reset task %s", task.id)

    # ---------------- Broadcast refresh ----------------

    def refresh(self, categories: List[TaskCategory], annotations: List[Segment]) -> Optional[Task]:
        """
        Apply a full refetch (after an "annotations updated" broadcast).

        Status and saved segments follow the Store. The editing set follows
        too, unless the user has unsaved edits: those stay until saved or the
        task is switched (last write wins at the Store).
        Returns the refreshed task, or None if it disappeared.
        """
        current = self.state.task
        if current is None:
            return None
        fresh_task = find_task(categories, current.id)
        if fresh_task is None:
            self.state = WorkspaceState()
            return None

        saved = sorted_segments(segments_for_task(annotations, current.id))
        had_saved = bool(self.state.saved)
        self.state.task = fresh_task
        self.state.saved = saved
        if not self.state.dirty:
            if saved:
                self.state.editing = list(saved)
                self.state.synthesis_checked_for = fresh_task.id
            elif had_saved or not self.state.editing or fresh_task.is_complete:
                # an untouched default split survives; anything else is rebuilt
                self.state.editing = []
                self.state.synthesis_checked_for = None
                self._maybe_synthesize()
        return fresh_task
