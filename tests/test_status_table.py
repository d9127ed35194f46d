# tests/test_status_table.py

from __future__ import annotations

import pytest

from taskdeck.tasks.status_table import (
    NEXT_STATUS,
    StatusAction,
    action_label,
    action_target,
    next_status,
    previous_status,
)
from taskdeck.tasks.task_models import TaskStatus


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("inbox", TaskStatus.BRAINSTORM),
        ("proposed", TaskStatus.TODO),
        ("backlog", TaskStatus.TODO),
        ("maybe", TaskStatus.BACKLOG),
        ("todo", TaskStatus.IN_PROGRESS),
        ("in-progress", TaskStatus.DONE),
        ("on-hold", TaskStatus.IN_PROGRESS),
        ("done", TaskStatus.REVIEWED),
    ],
)
def test_next_status_forward_moves(status: str, expected: TaskStatus) -> None:
    assert next_status(status) == expected


def test_terminal_and_unknown_statuses_have_no_forward_move() -> None:
    assert next_status(TaskStatus.REVIEWED) is None
    assert next_status(TaskStatus.ARCHIVED) is None
    assert next_status(TaskStatus.BRAINSTORM) is None
    assert next_status("nonsense") is None
    assert TaskStatus.REVIEWED not in NEXT_STATUS


def test_previous_status_and_labels() -> None:
    assert previous_status("todo") == TaskStatus.PROPOSED
    assert previous_status("archived") == TaskStatus.REVIEWED
    assert previous_status("inbox") is None

    assert action_label("todo") == "Start Progress"
    assert action_label("in-progress") == "Mark Done"
    assert action_label("archived") == ""
    assert action_label("bogus") == ""


def test_named_actions_target_expected_statuses() -> None:
    assert action_target(StatusAction.ARCHIVE) == TaskStatus.ARCHIVED
    assert action_target("reopen") == TaskStatus.TODO
    assert action_target("unarchive") == TaskStatus.BACKLOG
    assert action_target("mark-tested") == TaskStatus.DONE
    with pytest.raises(ValueError):
        action_target("explode")
