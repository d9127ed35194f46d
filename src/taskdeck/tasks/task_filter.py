# src/taskdeck/tasks/task_filter.py

"""
Task filtering.

Filters are pure functions over Task sequences. A view is evaluated in a fixed
order: status bucket -> project -> search term -> sort.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Union

from .task_models import Task, TaskStatus, parse_timestamp
from .task_sorter import SortDirection, SortOption, sort_tasks

TaskPredicate = Callable[[Task], bool]
ProjectFilter = Union[str, Sequence[str]]

PROJECT_ALL = "all"
PROJECT_NONE = "none"


class StatusFilter(StrEnum):
    """Special status-filter keys; any real TaskStatus value is also accepted."""

    ALL = "all"
    PENDING = "pending"
    RECENT_COMPLETED = "recent-completed"
    SOURCE_TASKS = "source-tasks"
    TODAY = "today"


SOURCE_STATUSES = frozenset({TaskStatus.BACKLOG, TaskStatus.BRAINSTORM})


@dataclass(slots=True, frozen=True)
class FilterPredicates:
    all: TaskPredicate
    pending: TaskPredicate
    source_tasks: TaskPredicate
    recent_completed: TaskPredicate
    today: TaskPredicate
    by_status: Callable[[str], TaskPredicate]


def create_filter_predicates(
    recent_threshold_seconds: float, now_ts: float | None = None
) -> FilterPredicates:
    """
    Build the predicate set.

    `recent_threshold_seconds` is the age window for recent_completed;
    `now_ts` pins "now" (epoch seconds) and defaults to time.time().
    """
    now = time.time() if now_ts is None else float(now_ts)
    window = float(recent_threshold_seconds)

    def not_completed(task: Task) -> bool:
        return not task.is_completed

    def source_tasks(task: Task) -> bool:
        return task.status in SOURCE_STATUSES

    def recent_completed(task: Task) -> bool:
        if not task.is_completed:
            return False
        completed = parse_timestamp(task.completed_at)
        if completed is None:
            return False
        return now - completed.timestamp() < window

    def today(task: Task) -> bool:
        return bool(task.starred)

    def by_status(status: str) -> TaskPredicate:
        return lambda task: task.status == status

    return FilterPredicates(
        all=not_completed,
        pending=not_completed,
        source_tasks=source_tasks,
        recent_completed=recent_completed,
        today=today,
        by_status=by_status,
    )


def _predicate_for(status_filter: str, predicates: FilterPredicates) -> TaskPredicate:
    special = {
        StatusFilter.ALL: predicates.all,
        StatusFilter.PENDING: predicates.pending,
        StatusFilter.RECENT_COMPLETED: predicates.recent_completed,
        StatusFilter.SOURCE_TASKS: predicates.source_tasks,
        StatusFilter.TODAY: predicates.today,
    }
    return special.get(status_filter, predicates.by_status(status_filter))


def filter_tasks_by_status(
    tasks: Sequence[Task], status_filter: str, predicates: FilterPredicates
) -> list[Task]:
    if not tasks:
        return []
    fn = _predicate_for(status_filter, predicates)
    return [t for t in tasks if fn(t)]


def should_include_task_by_project(task: Task, project_filter: ProjectFilter) -> bool:
    if isinstance(project_filter, str):
        if project_filter == PROJECT_ALL:
            return True
        if project_filter == PROJECT_NONE:
            return not task.project
        return task.project == project_filter
    return task.project in project_filter


def filter_tasks_by_search_term(tasks: Sequence[Task], search_term: str | None) -> Sequence[Task]:
    """
    Case-insensitive substring search over title, description, id,
    initiative, project and tags.

    A blank term returns `tasks` itself, not a copy.
    """
    if not search_term or not search_term.strip():
        return tasks

    needle = search_term.strip().lower()

    def matches(task: Task) -> bool:
        fields = (task.title, task.description, task.id, task.initiative or "", task.project)
        if any(needle in f.lower() for f in fields if f):
            return True
        return any(needle in tag.lower() for tag in task.tags)

    return [t for t in tasks if matches(t)]


@dataclass(slots=True)
class TaskView:
    """Current filter/sort selection of a task list."""

    status_filter: str = StatusFilter.ALL
    project_filter: ProjectFilter = PROJECT_ALL
    search_term: str = ""
    sort_by: SortOption = SortOption.CREATED
    sort_direction: SortDirection = SortDirection.DESC


def apply_task_filters(
    tasks: Sequence[Task], view: TaskView, predicates: FilterPredicates
) -> list[Task]:
    if not tasks:
        return []

    out: Sequence[Task] = filter_tasks_by_status(tasks, view.status_filter, predicates)
    if view.project_filter != PROJECT_ALL:
        out = [t for t in out if should_include_task_by_project(t, view.project_filter)]
    out = filter_tasks_by_search_term(out, view.search_term)
    return sort_tasks(out, view.sort_by, view.sort_direction)
