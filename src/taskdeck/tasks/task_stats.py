# src/taskdeck/tasks/task_stats.py

from __future__ import annotations

from collections.abc import Iterable

from .task_models import Task, TaskStatus

SECONDS_PER_DAY = 24 * 60 * 60


def calculate_status_counts(tasks: Iterable[Task]) -> dict[str, int]:
    """Count tasks per status; every status is present, zero when unused."""
    counts = {s.value: 0 for s in TaskStatus}
    for task in tasks:
        counts[task.status.value] += 1
    return counts


def recent_completed_threshold_seconds(days: float = 2) -> float:
    return max(0.0, float(days)) * SECONDS_PER_DAY
