# tests/test_events.py

from __future__ import annotations

import logging

import pytest

from taskdeck.core.events import TASK_UPDATED, Event, EventBus


def test_subscribe_emit_and_unsubscribe() -> None:
    bus = EventBus()
    seen: list[Event] = []

    unsubscribe = bus.subscribe(TASK_UPDATED, seen.append)
    assert bus.emit(TASK_UPDATED, {"id": "t1"}) == 1
    assert seen[0].type == TASK_UPDATED
    assert seen[0].payload["id"] == "t1"

    unsubscribe()
    assert bus.emit(TASK_UPDATED, {"id": "t1"}) == 0
    assert bus.listener_count(TASK_UPDATED) == 0


def test_payload_is_read_only() -> None:
    bus = EventBus()
    seen: list[Event] = []
    bus.subscribe("x", seen.append)
    bus.emit("x", {"a": 1})

    with pytest.raises(TypeError):
        seen[0].payload["a"] = 2  # type: ignore[index]


def test_failing_listener_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    bus = EventBus()
    seen: list[Event] = []

    def broken(event: Event) -> None:
        raise RuntimeError("listener bug")

    bus.subscribe("x", broken)
    bus.subscribe("x", seen.append)

    with caplog.at_level(logging.ERROR, logger="taskdeck.core.events"):
        notified = bus.emit("x")

    assert notified == 1
    assert len(seen) == 1
    assert "Listener failed" in caplog.text


def test_listener_limit_warns(caplog: pytest.LogCaptureFixture) -> None:
    bus = EventBus(max_listeners_per_event=2)
    with caplog.at_level(logging.WARNING, logger="taskdeck.core.events"):
        for _ in range(3):
            bus.subscribe("x", lambda e: None)
    assert "possible listener leak" in caplog.text
    assert bus.listener_count("x") == 3
