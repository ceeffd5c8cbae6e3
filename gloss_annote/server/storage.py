# gloss_annote/server/storage.py
from __future__ import annotations

import math
import os
import threading
from typing import Dict, List, Optional

from ..domain import (
    STATUS_COMPLETE,
    STATUS_ERROR,
    STATUS_PARTIAL,
    STATUS_PENDING,
    Segment,
)
from ..logger import logger
from ..persistence import atomic_write_json, parse_annotation_list, read_json_or


# Statuses a client may set; "unknown" is only ever a decoding result
SETTABLE_STATUSES = (STATUS_PENDING, STATUS_PARTIAL, STATUS_COMPLETE, STATUS_ERROR)


class UnknownTaskError(KeyError):
    pass


def derive_status(glosses: List[str], annotated: set) -> str:
    """Status of a task whose status was never stored: by how many glosses have a segment."""
    covered = len(set(glosses) & annotated)
    if covered == 0:
        return STATUS_PENDING
    if covered < len(set(glosses)):
        return STATUS_PARTIAL
    return STATUS_COMPLETE


def validate_segment(seg: Segment) -> None:
    if not seg.id or not seg.task_id:
        raise ValueError(f"annotation {seg.id!r} needs an id and a taskId")
    if not (math.isfinite(seg.start_time) and math.isfinite(seg.end_time)):
        raise ValueError(f"annotation {seg.id!r} has a non-finite time")
    if seg.start_time < 0 or seg.end_time < seg.start_time:
        raise ValueError(f"annotation {seg.id!r} has an invalid time range")


class AnnotationStore:
    """
    JSON-file backed Store.

    data_dir/
      tasks.json         # [{categoryName, tasks: [{id, video, glosses}]}], read-only here
      annotations.json   # [{id, taskId, gloss, startTime, endTime}]
      statuses.json      # {taskId: status}
      videos/

    Writes are serialized by one lock and each file is replaced atomically.
    """

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.tasks_path = os.path.join(data_dir, "tasks.json")
        self.annotations_path = os.path.join(data_dir, "annotations.json")
        self.statuses_path = os.path.join(data_dir, "statuses.json")
        self._lock = threading.Lock()

    # ---------------- Reads ----------------

    def _raw_categories(self) -> List[Dict]:
        return read_json_or(self.tasks_path, [])

    def _raw_annotations(self) -> List[Dict]:
        return read_json_or(self.annotations_path, [])

    def _raw_statuses(self) -> Dict[str, str]:
        return read_json_or(self.statuses_path, {})

    def categories(self) -> List[Dict]:
        """tasks.json with a status on every task (stored, or derived from coverage)."""
        with self._lock:
            cats = self._raw_categories()
            annotations = self._raw_annotations()
            statuses = self._raw_statuses()

        glosses_by_task: Dict[str, set] = {}
        for a in annotations:
            glosses_by_task.setdefault(str(a.get("taskId")), set()).add(str(a.get("gloss", "")))

        out = []
        for cat in cats:
            tasks = []
            for t in cat.get("tasks") or []:
                tid = str(t["id"])
                status = statuses.get(tid)
                if status is None:
                    status = derive_status(list(t.get("glosses") or []), glosses_by_task.get(tid, set()))
                tasks.append({**t, "status": status})
            out.append({**cat, "tasks": tasks})
        return out

    def find_task(self, task_id: str) -> Optional[Dict]:
        for cat in self._raw_categories():
            for t in cat.get("tasks") or []:
                if str(t.get("id")) == task_id:
                    return t
        return None

    def annotations(self) -> List[Dict]:
        with self._lock:
            return self._raw_annotations()

    # ---------------- Writes ----------------

    def import_annotations(self, payload) -> int:
        """
        Adds every annotation of payload in one write. An existing id is
        overwritten. Raises ValueError (nothing written) on invalid input.
        """
        segments = parse_annotation_list(payload)
        for seg in segments:
            validate_segment(seg)

        with self._lock:
            existing = self._raw_annotations()
            by_id = {str(a.get("id")): a for a in existing}
            for seg in segments:
                by_id[seg.id] = seg.to_dict()
            atomic_write_json(self.annotations_path, list(by_id.values()))
        logger.info("Imported %d annotations", len(segments))
        return len(segments)

    def delete_task_annotations(self, task_id: str) -> int:
        with self._lock:
            existing = self._raw_annotations()
            kept = [a for a in existing if str(a.get("taskId")) != task_id]
            removed = len(existing) - len(kept)
            if removed:
                atomic_write_json(self.annotations_path, kept)
        logger.info("Deleted %d annotations of task %s", removed, task_id)
        return removed

    def set_status(self, task_id: str, status) -> str:
        status = str(status or "").strip().lower()
        if status not in SETTABLE_STATUSES:
            raise ValueError(f"unknown status {status!r}")
        if self.find_task(task_id) is None:
            raise UnknownTaskError(task_id)
        with self._lock:
            statuses = self._raw_statuses()
            statuses[task_id] = status
            atomic_write_json(self.statuses_path, statuses)
        logger.info("Task %s status -> %s", task_id, status)
        return status
