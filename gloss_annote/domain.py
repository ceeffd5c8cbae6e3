# gloss_annote/domain.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional


# -----------------------------
# Task status
# -----------------------------

STATUS_PENDING = "pending"
STATUS_PARTIAL = "partial"
STATUS_COMPLETE = "complete"
STATUS_ERROR = "error"
STATUS_UNKNOWN = "unknown"

TASK_STATUSES = (STATUS_PENDING, STATUS_PARTIAL, STATUS_COMPLETE, STATUS_ERROR, STATUS_UNKNOWN)

STATUS_DISPLAY: Dict[str, str] = {
    STATUS_PENDING: "Pending",
    STATUS_PARTIAL: "In progress",
    STATUS_COMPLETE: "Complete",
    STATUS_ERROR: "Error",
    STATUS_UNKNOWN: "Unknown",
}

# success / warning / error / info
STATUS_COLORS: Dict[str, str] = {
    STATUS_COMPLETE: "#2E7D32",
    STATUS_PARTIAL: "#ED6C02",
    STATUS_ERROR: "#D32F2F",
    STATUS_PENDING: "#0288D1",
    STATUS_UNKNOWN: "#0288D1",
}


def normalize_status(value) -> str:
    """Map any incoming status string onto TASK_STATUSES ("unknown" if unrecognized)."""
    s = str(value or "").strip().lower()
    return s if s in TASK_STATUSES else STATUS_UNKNOWN


def status_color_hex(status: str) -> str:
    return STATUS_COLORS.get(normalize_status(status), STATUS_COLORS[STATUS_UNKNOWN])


# -----------------------------
# Segment colors
# -----------------------------

# Cycled by segment index so neighbouring segments never share a color.
SEGMENT_COLOR_PALETTE: List[str] = [
    "#F44336", "#E91E63", "#9C27B0", "#673AB7", "#3F51B5",
    "#2196F3", "#03A9F4", "#00BCD4", "#009688", "#4CAF50",
    "#8BC34A", "#CDDC39", "#FFEB3B", "#FFC107", "#FF9800",
    "#FF5722", "#795548", "#9E9E9E", "#607D8B",
]


def segment_color_hex(index: int) -> str:
    return SEGMENT_COLOR_PALETTE[int(index) % len(SEGMENT_COLOR_PALETTE)]


# -----------------------------
# Core Dataclasses
# -----------------------------

@dataclass(frozen=True)
class Segment:
    """
    One labeled time interval of a task, in seconds.

    The wire format (Store JSON) uses camelCase keys and calls the label "gloss":
      {"id", "taskId", "gloss", "startTime", "endTime"}
    """
    id: str
    task_id: str
    label: str
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return float(self.end_time) - float(self.start_time)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "gloss": self.label,
            "startTime": float(self.start_time),
            "endTime": float(self.end_time),
        }

    @staticmethod
    def from_dict(d: Dict) -> "Segment":
        return Segment(
            id=str(d["id"]),
            task_id=str(d["taskId"]),
            label=str(d.get("gloss", "")),
            start_time=float(d["startTime"]),
            end_time=float(d["endTime"]),
        )


@dataclass
class Task:
    """
    A video plus the ordered glosses expected in it.

    status is owned by the Store; the client only requests transitions.
    """
    id: str
    video: str
    glosses: List[str] = field(default_factory=list)
    status: str = STATUS_PENDING
    category: str = ""

    @property
    def is_complete(self) -> bool:
        return self.status == STATUS_COMPLETE

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "video": self.video,
            "glosses": list(self.glosses),
            "status": self.status,
        }

    @staticmethod
    def from_dict(d: Dict, category: str = "") -> "Task":
        return Task(
            id=str(d["id"]),
            video=str(d.get("video", "")),
            glosses=[str(g) for g in (d.get("glosses") or [])],
            status=normalize_status(d.get("status")),
            category=category,
        )


@dataclass
class TaskCategory:
    name: str
    tasks: List[Task] = field(default_factory=list)

    @staticmethod
    def from_dict(d: Dict) -> "TaskCategory":
        name = str(d.get("categoryName", ""))
        return TaskCategory(
            name=name,
            tasks=[Task.from_dict(t, category=name) for t in (d.get("tasks") or [])],
        )


def find_task(categories: List[TaskCategory], task_id: Optional[str]) -> Optional[Task]:
    if not task_id:
        return None
    for cat in categories:
        for t in cat.tasks:
            if t.id == task_id:
                return t
    return None


def segments_for_task(segments: List[Segment], task_id: Optional[str]) -> List[Segment]:
    if not task_id:
        return []
    return [s for s in segments if s.task_id == task_id]


@dataclass
class SignedVideoUrl:
    """
    Short-lived object-storage URL for a task's video.
    fetched_at is a time.monotonic() stamp; ttl is seconds.
    """
    url: str
    fetched_at: float
    ttl: float = 180.0

    def is_expired(self, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else float(now)
        return (now - self.fetched_at) >= self.ttl
