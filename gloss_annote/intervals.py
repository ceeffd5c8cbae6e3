# gloss_annote/intervals.py
from __future__ import annotations

import math
import uuid
from dataclasses import replace
from typing import Callable, List, Sequence

from .domain import Segment


# Tolerance for float comparisons when validating a partition (seconds).
EPSILON = 1e-6
# Boundaries this close to 0 or to the duration are moved onto it before saving (seconds).
SNAP_TOLERANCE = 0.05


def new_segment_id() -> str:
    return f"seg_{uuid.uuid4().hex}"


# -----------------------------
# Construction
# -----------------------------

def even_split(
    task_id: str,
    labels: Sequence[str],
    duration: float,
    id_factory: Callable[[], str] = new_segment_id,
) -> List[Segment]:
    """
    Split [0, duration] evenly across labels, one segment per label, in order.

    Neighbouring segments share the exact same boundary value, so contiguity
    holds without float drift. The last segment always ends at duration.
    """
    n = len(labels)
    duration = float(duration)
    if n == 0 or duration <= 0:
        return []

    bounds = [i * duration / n for i in range(n)] + [duration]
    return [
        Segment(
            id=id_factory(),
            task_id=task_id,
            label=str(label),
            start_time=bounds[i],
            end_time=bounds[i + 1],
        )
        for i, label in enumerate(labels)
    ]


def sorted_segments(segments: Sequence[Segment]) -> List[Segment]:
    return sorted(segments, key=lambda s: (float(s.start_time), float(s.end_time)))


def with_new_ids(segments: Sequence[Segment], id_factory: Callable[[], str] = new_segment_id) -> List[Segment]:
    """Copy of segments with fresh ids (every save replaces the persisted set)."""
    return [replace(s, id=id_factory()) for s in segments]


# -----------------------------
# The one mutation primitive
# -----------------------------

def move_split(segments: Sequence[Segment], k: int, t: float) -> List[Segment]:
    """
    Move split point k (between segments k and k+1) to time t.

    t is clamped to [segments[k].start_time, segments[k+1].end_time]; dragging
    past a limit stops at the limit, it is never rejected. Only segments k and
    k+1 change. Returns a new list; the input is left untouched.
    """
    out = list(segments)
    if not (0 <= k < len(out) - 1):
        raise IndexError(f"split index {k} out of range for {len(out)} segments")

    t = float(t)
    if math.isnan(t):
        return out

    left = out[k]
    right = out[k + 1]
    lo = float(left.start_time)
    hi = float(right.end_time)
    t = max(lo, min(t, hi))

    out[k] = replace(left, end_time=t)
    out[k + 1] = replace(right, start_time=t)
    return out


# -----------------------------
# Queries / validation
# -----------------------------

def split_times(segments: Sequence[Segment]) -> List[float]:
    """Internal split points: end of every segment except the last."""
    return [float(s.end_time) for s in list(segments)[:-1]]


def total_duration(segments: Sequence[Segment]) -> float:
    return sum(float(s.end_time) - float(s.start_time) for s in segments)


def validate_partition(segments: Sequence[Segment], duration: float) -> None:
    """
    Raise ValueError if segments are not an ordered contiguous partition of [0, duration].
    An empty list is valid (nothing to annotate yet).
    """
    segs = list(segments)
    if not segs:
        return
    duration = float(duration)

    if abs(float(segs[0].start_time)) > EPSILON:
        raise ValueError(f"first segment must start at 0, got {segs[0].start_time:.6f}")
    if abs(float(segs[-1].end_time) - duration) > EPSILON:
        raise ValueError(
            f"last segment must end at {duration:.6f}, got {segs[-1].end_time:.6f}"
        )

    for i, s in enumerate(segs):
        if float(s.end_time) < float(s.start_time) - EPSILON:
            raise ValueError(f"segment {i} ({s.label}) has negative length")
        if float(s.start_time) < -EPSILON or float(s.end_time) > duration + EPSILON:
            raise ValueError(f"segment {i} ({s.label}) lies outside [0, {duration:.6f}]")
        if i + 1 < len(segs) and abs(float(s.end_time) - float(segs[i + 1].start_time)) > EPSILON:
            raise ValueError(f"gap or overlap between segment {i} and {i + 1}")


def snap_to_duration(
    segments: Sequence[Segment], duration: float, tolerance: float = SNAP_TOLERANCE
) -> List[Segment]:
    """
    Move the outer boundaries onto 0 and duration when they are within tolerance.

    Segments loaded from the Store or a file may end a few milliseconds off the
    duration the player reports. Every boundary inside the tolerance band is
    moved, so neighbours stay contiguous and lengths stay non-negative.
    Anything further off is left for validate_partition to reject.
    """
    duration = float(duration)
    segs = list(segments)
    if duration <= 0 or not segs:
        return segs

    def snap(t: float) -> float:
        t = float(t)
        if -tolerance <= t < 0:
            return 0.0
        if duration < t <= duration + tolerance:
            return duration
        return t

    out = [replace(s, start_time=snap(s.start_time), end_time=snap(s.end_time)) for s in segs]
    if abs(float(out[0].start_time)) <= tolerance:
        out[0] = replace(out[0], start_time=0.0)
    if abs(float(out[-1].end_time) - duration) <= tolerance:
        out[-1] = replace(out[-1], end_time=duration)
    return out
