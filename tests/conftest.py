# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.cli.bootstrap import create_initial_state
from taskdeck.core.events import EventBus
from taskdeck.core.state import AppState
from taskdeck.core.terminology import BusinessCase
from taskdeck.prefs.store import MemoryPreferenceStore
from taskdeck.tasks.task_models import Task
from taskdeck.tasks.task_operations import TaskOperations

from .fakes import FakeClock, FakeTaskApi, make_record

# Shared records for filter, sort and operation tests.
MOCK_RECORDS = [
    make_record(
        "task1",
        title="Task 1",
        description="First test task",
        status="todo",
        priority="medium",
        project="project1",
        createdAt="2025-01-01T00:00:00Z",
        updatedAt="2025-01-10T00:00:00Z",
        tags=["test", "important"],
    ),
    make_record(
        "task2",
        title="Task 2",
        description="Second test task",
        status="in-progress",
        priority="high",
        project="project1",
        createdAt="2025-01-05T00:00:00Z",
        updatedAt="2025-01-05T00:00:00Z",
        tags=["test"],
    ),
    make_record(
        "task3",
        title="Task 3",
        description="Third test task with feature",
        status="done",
        priority="low",
        project="project2",
        completedAt="2025-01-20T00:00:00Z",
        createdAt="2025-01-10T00:00:00Z",
        updatedAt="2025-01-20T00:00:00Z",
        tags=["test", "feature"],
    ),
    make_record(
        "task4",
        title="Task 4",
        description="Fourth test task with feature",
        status="reviewed",
        priority="medium",
        project="project2",
        completedAt="2025-01-01T00:00:00Z",
        createdAt="2024-12-01T00:00:00Z",
        updatedAt="2025-01-01T00:00:00Z",
        tags=["test", "feature", "old"],
    ),
    make_record(
        "task5",
        title="Task 5",
        description="Fifth task with no project",
        status="backlog",
        priority="low",
        project="",
        createdAt="2025-01-15T00:00:00Z",
        updatedAt="2025-01-15T00:00:00Z",
        tags=["test", "noproject"],
    ),
    make_record(
        "task6",
        title="Starred Task",
        description="A task marked as starred",
        status="todo",
        priority="high",
        project="project1",
        createdAt="2025-01-16T00:00:00Z",
        updatedAt="2025-01-16T00:00:00Z",
        tags=["test"],
        starred=True,
    ),
]


@pytest.fixture()
def mock_tasks() -> list[Task]:
    return [Task.from_dict(r) for r in MOCK_RECORDS]


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the composition root.

    A SimpleNamespace keeps tests independent from the process environment.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="DEBUG",
        api_url="http://tasks.test/api",
        api_key="test-key",
        request_timeout_seconds=5.0,
        data_dir=tmp_path,
        prefs_path=tmp_path / "prefs.json",
        recent_completed_days=2,
        poll_interval_seconds=60.0,
        polling_enabled=False,
        business_case=BusinessCase.TASKS,
    )


@pytest.fixture()
def api() -> FakeTaskApi:
    return FakeTaskApi(MOCK_RECORDS)


@pytest.fixture()
def prefs() -> MemoryPreferenceStore:
    return MemoryPreferenceStore()


@pytest.fixture()
def events() -> EventBus:
    return EventBus()


@pytest.fixture()
def ops(api: FakeTaskApi, events: EventBus, prefs: MemoryPreferenceStore) -> TaskOperations:
    return TaskOperations(api, events=events, prefs=prefs, clock=FakeClock())


@pytest.fixture()
def state(settings: SimpleNamespace, api: FakeTaskApi, prefs: MemoryPreferenceStore) -> AppState:
    return create_initial_state(settings=settings, api=api, prefs=prefs)
