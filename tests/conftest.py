"""Shared test fixtures."""

import itertools

import pytest

from gloss_annote.domain import Segment, Task, TaskCategory


def make_segments(task_id, labels, bounds, prefix="s"):
    """Segments labels[i] = [bounds[i], bounds[i+1]]."""
    return [
        Segment(id=f"{prefix}{i}", task_id=task_id, label=label, start_time=bounds[i], end_time=bounds[i + 1])
        for i, label in enumerate(labels)
    ]


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"new{next(counter)}"


@pytest.fixture
def pending_task():
    return Task(id="t1", video="t1.mp4", glosses=["A", "B", "C"], status="pending", category="Daily")


@pytest.fixture
def categories(pending_task):
    return [TaskCategory(name="Daily", tasks=[pending_task])]
