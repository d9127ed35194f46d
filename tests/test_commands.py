# tests/test_commands.py

from __future__ import annotations

import pytest

from taskdeck.cli.commands import CommandIO, CommandRegistry
from taskdeck.cli.commands import registry as default_registry
from taskdeck.core.errors import ValidationError
from taskdeck.core.state import AppState
from taskdeck.prefs.store import COMMANDS_VISIBILITY_KEY
from taskdeck.tasks.task_models import TaskStatus

from .fakes import FakeTaskApi, RecordingConfirm


@pytest.mark.asyncio
async def test_registry_unknown_non_command_and_validation(state: AppState) -> None:
    reg = CommandRegistry()

    async def strict(state, args, io):
        raise ValidationError("bad value")

    reg.register("strict", strict, "strict")

    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert await reg.handle(state, "/strict") == "Invalid input: bad value"


@pytest.mark.asyncio
async def test_list_and_search(state: AppState) -> None:
    await state.ops.refresh_tasks()

    out = await default_registry.handle(state, "/list todo project1 priority desc")
    assert "2 shown" in out
    assert out.index("Starred Task") < out.index("Task 1")

    out = await default_registry.handle(state, "/search feature")
    assert "Task 3" not in out  # still filtered to todo
    assert "0 shown" in out

    assert "Unknown filter" in await default_registry.handle(state, "/list whatever")


@pytest.mark.asyncio
async def test_add_next_and_star(state: AppState, api: FakeTaskApi) -> None:
    await state.ops.refresh_tasks()

    out = await default_registry.handle(state, "/add Ship it project=project2 priority=high")
    assert "Created" in out
    new_id = next(k for k in api.records if k.startswith("new-"))
    assert api.records[new_id]["priority"] == "high"

    out = await default_registry.handle(state, f"/next {new_id}")
    assert "Start Progress" in out
    assert state.ops.get(new_id).status == TaskStatus.IN_PROGRESS

    assert await default_registry.handle(state, f"/star {new_id}") == "Starred."

    assert "Invalid input" in await default_registry.handle(state, "/add")


@pytest.mark.asyncio
async def test_status_command_accepts_actions_and_reports_failures(state: AppState, api: FakeTaskApi) -> None:
    await state.ops.refresh_tasks()

    await default_registry.handle(state, "/status task5 archive")
    assert state.ops.get("task5").status == TaskStatus.ARCHIVED

    api.fail("update_task")
    out = await default_registry.handle(state, "/status task1 done")
    assert out.startswith("[WARN]")
    assert state.ops.get("task1").status == TaskStatus.TODO


@pytest.mark.asyncio
async def test_delete_asks_for_confirmation(state: AppState) -> None:
    await state.ops.refresh_tasks()
    no = RecordingConfirm(answer=False)

    out = await default_registry.handle(state, "/delete task1", CommandIO(confirm=no))
    assert out == "Cancelled."
    assert len(no.asked) == 1

    out = await default_registry.handle(state, "/delete task1", CommandIO(confirm=RecordingConfirm()))
    assert out.startswith("Deleted")
    assert state.ops.get("task1") is None


@pytest.mark.asyncio
async def test_commands_toggle_is_persisted(state: AppState) -> None:
    assert state.commands_visible is True
    await default_registry.handle(state, "/commands")

    assert state.commands_visible is False
    assert state.prefs.get(COMMANDS_VISIBILITY_KEY) == "false"
    assert "hidden" in await default_registry.handle(state, "/help")


@pytest.mark.asyncio
async def test_counts_and_initiatives(state: AppState, api: FakeTaskApi) -> None:
    await state.ops.refresh_tasks()
    api.initiatives = [{"_id": "i1", "name": "Growth", "status": "in-progress"}]

    counts = await default_registry.handle(state, "/counts")
    assert "todo" in counts and "6 total" in counts

    out = await default_registry.handle(state, "/initiatives")
    assert "Growth" in out

    out = await default_registry.handle(state, "/initiatives new Retention")
    assert "Retention" in out


@pytest.mark.asyncio
async def test_list_accepts_several_projects(state: AppState) -> None:
    await state.ops.refresh_tasks()

    out = await default_registry.handle(state, "/list all project1,project2")
    assert "3 shown" in out
    assert "project=project1,project2" in out

    out = await default_registry.handle(state, "/list done project2,project1")
    assert "1 shown" in out
    assert "Task 3" in out


@pytest.mark.asyncio
async def test_history_lists_recent_outcomes(state: AppState, api: FakeTaskApi) -> None:
    assert await default_registry.handle(state, "/history") == "No operations yet."

    await state.ops.refresh_tasks()
    await default_registry.handle(state, "/star task1")
    api.fail("update_task")
    await default_registry.handle(state, "/star task2")

    out = await default_registry.handle(state, "/history")
    lines = out.splitlines()
    assert lines[0] == "Last 2 operations:"
    assert "task2" in lines[1] and "rolled-back" in lines[1]
    assert "task1" in lines[2] and "committed" in lines[2]

    assert "Invalid input" in await default_registry.handle(state, "/history many")
