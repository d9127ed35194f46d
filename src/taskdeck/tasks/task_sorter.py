# src/taskdeck/tasks/task_sorter.py

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import StrEnum

from .task_models import Task, TaskPriority, TaskStatus, timestamp_key


class SortOption(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    PRIORITY = "priority"
    STATUS = "status"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


PRIORITY_RANK: dict[str, int] = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
}

# Workflow order, earlier statuses first.
STATUS_ORDER: tuple[TaskStatus, ...] = (
    TaskStatus.INBOX,
    TaskStatus.BRAINSTORM,
    TaskStatus.PROPOSED,
    TaskStatus.BACKLOG,
    TaskStatus.MAYBE,
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.ON_HOLD,
    TaskStatus.DONE,
    TaskStatus.REVIEWED,
    TaskStatus.ARCHIVED,
)
_STATUS_RANK = {s: i for i, s in enumerate(STATUS_ORDER)}


def _status_rank(task: Task) -> int:
    return _STATUS_RANK.get(task.status, -1)


_SORT_KEYS: dict[SortOption, Callable[[Task], float]] = {
    SortOption.CREATED: lambda t: timestamp_key(t.created_at),
    SortOption.UPDATED: lambda t: timestamp_key(t.updated_at),
    SortOption.PRIORITY: lambda t: PRIORITY_RANK.get(t.priority, 0),
    SortOption.STATUS: _status_rank,
}


def sort_tasks(
    tasks: Sequence[Task],
    sort_by: SortOption | str = SortOption.CREATED,
    direction: SortDirection | str = SortDirection.DESC,
) -> list[Task]:
    """
    Return a new list ordered by `sort_by`.

    `sorted` is stable in both directions (reverse=True keeps equal keys in
    input order), so ties always keep their original relative order.
    """
    if not tasks:
        return []
    key = _SORT_KEYS[SortOption(sort_by)]
    return sorted(tasks, key=key, reverse=SortDirection(direction) == SortDirection.DESC)


def sort_by_newest_first(tasks: Sequence[Task]) -> list[Task]:
    return sort_tasks(tasks, SortOption.CREATED, SortDirection.DESC)


def deduplicate_tasks(tasks: Sequence[Task]) -> list[Task]:
    """
    Collapse entries sharing an id into the one with the latest updated_at.

    The survivor takes the slot of the id's first occurrence; on equal
    timestamps the earlier copy is kept.
    """
    by_id: dict[str, Task] = {}
    for task in tasks:
        existing = by_id.get(task.id)
        if existing is None or timestamp_key(task.updated_at) > timestamp_key(existing.updated_at):
            by_id[task.id] = task
    return list(by_id.values())
