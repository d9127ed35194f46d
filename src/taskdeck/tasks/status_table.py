# src/taskdeck/tasks/status_table.py

"""
Status workflow table.

Static lookups only:
- next_status: the default forward move offered for a status
- previous_status: the step back
- action_label: button text for the default forward move

`reviewed` has no forward mapping; archiving a reviewed task is the explicit
ARCHIVE action, not the default one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .task_models import TaskStatus

S = TaskStatus

NEXT_STATUS: dict[TaskStatus, TaskStatus] = {
    S.INBOX: S.BRAINSTORM,
    S.PROPOSED: S.TODO,
    S.BACKLOG: S.TODO,
    S.MAYBE: S.BACKLOG,
    S.TODO: S.IN_PROGRESS,
    S.IN_PROGRESS: S.DONE,
    S.ON_HOLD: S.IN_PROGRESS,
    S.DONE: S.REVIEWED,
}

PREVIOUS_STATUS: dict[TaskStatus, TaskStatus] = {
    S.BRAINSTORM: S.INBOX,
    S.PROPOSED: S.INBOX,
    S.BACKLOG: S.PROPOSED,
    S.MAYBE: S.PROPOSED,
    S.TODO: S.PROPOSED,
    S.IN_PROGRESS: S.TODO,
    S.ON_HOLD: S.IN_PROGRESS,
    S.DONE: S.IN_PROGRESS,
    S.REVIEWED: S.DONE,
    S.ARCHIVED: S.REVIEWED,
}

ACTION_LABELS: dict[TaskStatus, str] = {
    S.INBOX: "Move to Brainstorm",
    S.PROPOSED: "Move to Todo",
    S.BACKLOG: "Move to Todo",
    S.MAYBE: "Move to Backlog",
    S.TODO: "Start Progress",
    S.IN_PROGRESS: "Mark Done",
    S.ON_HOLD: "Resume Progress",
    S.DONE: "Mark Reviewed",
    S.REVIEWED: "Archive Task",
}


def _coerce(status: TaskStatus | str) -> TaskStatus | None:
    try:
        return TaskStatus(status)
    except ValueError:
        return None


def next_status(status: TaskStatus | str) -> TaskStatus | None:
    s = _coerce(status)
    return NEXT_STATUS.get(s) if s is not None else None


def previous_status(status: TaskStatus | str) -> TaskStatus | None:
    s = _coerce(status)
    return PREVIOUS_STATUS.get(s) if s is not None else None


def action_label(status: TaskStatus | str) -> str:
    s = _coerce(status)
    return ACTION_LABELS.get(s, "") if s is not None else ""


class StatusAction(StrEnum):
    """Explicit transitions offered next to the default forward move."""

    TO_BACKLOG = "to-backlog"
    TO_MAYBE = "to-maybe"
    ON_HOLD = "on-hold"
    ARCHIVE = "archive"
    REOPEN = "reopen"
    STILL_WORKING = "still-working"
    MARK_TESTED = "mark-tested"
    UNARCHIVE = "unarchive"


@dataclass(slots=True, frozen=True)
class ActionSpec:
    label: str
    target: TaskStatus


ACTIONS: dict[StatusAction, ActionSpec] = {
    StatusAction.TO_BACKLOG: ActionSpec("To Backlog", S.BACKLOG),
    StatusAction.TO_MAYBE: ActionSpec("To Someday/Maybe", S.MAYBE),
    StatusAction.ON_HOLD: ActionSpec("Put On Hold", S.ON_HOLD),
    StatusAction.ARCHIVE: ActionSpec("Archive", S.ARCHIVED),
    StatusAction.REOPEN: ActionSpec("Reopen Task", S.TODO),
    StatusAction.STILL_WORKING: ActionSpec("Still Working", S.IN_PROGRESS),
    StatusAction.MARK_TESTED: ActionSpec("Mark Tested", S.DONE),
    StatusAction.UNARCHIVE: ActionSpec("Unarchive", S.BACKLOG),
}


def action_target(action: StatusAction | str) -> TaskStatus:
    return ACTIONS[StatusAction(action)].target
