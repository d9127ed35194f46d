# tests/test_task_stats.py

from __future__ import annotations

from taskdeck.tasks.task_models import Task, TaskStatus
from taskdeck.tasks.task_stats import calculate_status_counts, recent_completed_threshold_seconds


def test_counts_cover_every_status(mock_tasks: list[Task]) -> None:
    counts = calculate_status_counts(mock_tasks)
    assert set(counts) == {s.value for s in TaskStatus}
    assert counts["todo"] == 2
    assert counts["done"] == 1
    assert counts["reviewed"] == 1
    assert counts["archived"] == 0
    assert sum(counts.values()) == len(mock_tasks)


def test_counts_for_empty_list() -> None:
    assert all(v == 0 for v in calculate_status_counts([]).values())


def test_threshold_seconds() -> None:
    assert recent_completed_threshold_seconds(2) == 2 * 24 * 3600
    assert recent_completed_threshold_seconds(-1) == 0.0
