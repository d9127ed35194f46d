# tests/test_console_connector.py

from __future__ import annotations

import pytest

from taskdeck.connectors.console_connector import run_console_loop
from taskdeck.core.state import AppState


def _scripted(lines: list[str]):
    queue = list(lines)
    prompts: list[str] = []

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        if not queue:
            raise EOFError
        return queue.pop(0)

    return fake_input, prompts


@pytest.mark.asyncio
async def test_console_runs_commands_until_exit(state: AppState, capsys: pytest.CaptureFixture[str]) -> None:
    fake_input, _ = _scripted(["/counts", "hello", "/exit", "/counts"])

    await run_console_loop(state, input_fn=fake_input)

    out = capsys.readouterr().out
    assert "Tasks: 4 shown" in out
    assert "6 total" in out
    assert "Commands start with '/'" in out


@pytest.mark.asyncio
async def test_console_delete_prompts_user(state: AppState, capsys: pytest.CaptureFixture[str]) -> None:
    fake_input, prompts = _scripted(["/delete task1", "y"])

    await run_console_loop(state, input_fn=fake_input)

    assert any(p.startswith("Delete task 'Task 1'?") for p in prompts)
    assert state.ops.get("task1") is None
    assert "Deleted: Task 1" in capsys.readouterr().out
