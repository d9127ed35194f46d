# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import CommandIO
from ..cli.commands import registry as command_registry
from ..core.events import TASK_CREATED, TASK_DELETED, TASK_UPDATED, Event
from ..core.state import AppState
from ..tasks.list_poller import run_list_poller
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _log_sync_event(event: Event) -> None:
    payload = event.payload
    task_id = payload.id if isinstance(payload, Task) else (payload or {}).get("id")
    logger.debug("Sync event %s id=%s", event.type, task_id)


def _start_poller(state: AppState) -> asyncio.Task[None] | None:
    settings = state.settings
    if not getattr(settings, "polling_enabled", True):
        return None
    interval = float(getattr(settings, "poll_interval_seconds", 60.0))
    return asyncio.create_task(
        run_list_poller(state.remote_lists(), interval_seconds=interval),
        name="taskdeck-list-poller",
    )


async def run_console_loop(state: AppState, *, input_fn: InputFn = input) -> None:
    """
    Async REPL: blocking input() runs in a worker thread so the list poller
    keeps running on the event loop between commands.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.")

    unsubscribers = [
        state.events.subscribe(t, _log_sync_event) for t in (TASK_CREATED, TASK_UPDATED, TASK_DELETED)
    ]

    async def confirm(task: Task) -> bool:
        term = state.terms.get("item", "task").lower()
        try:
            answer = await asyncio.to_thread(input_fn, f"Delete {term} {task.title!r}? [y/N] ")
        except (EOFError, KeyboardInterrupt):
            return False
        return answer.strip().lower() in {"y", "yes"}

    io = CommandIO(emit=_print_ts, confirm=confirm)

    await state.ops.refresh_tasks()
    _print_ts(await command_registry.handle(state, "/list", io) or "")

    poller = _start_poller(state)

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input_fn, ">>> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                response = await command_registry.handle(state, user_input, io)
            except Exception:
                logger.exception("Command handler crashed.")
                response = "Internal error while handling a command."

            if response is None:
                response = "Commands start with '/'. Use /help to list them."
            _print_ts(response)
    finally:
        if poller is not None:
            poller.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await poller
        for unsubscribe in unsubscribers:
            unsubscribe()

    logger.info("Console connector finished.")
