# tests/test_list_poller.py

from __future__ import annotations

import asyncio

import pytest

from taskdeck.core.errors import ValidationError
from taskdeck.tasks.list_poller import InitiativeList, RemoteList, dedupe_by_id, run_list_poller

from .fakes import FakeTaskApi


@pytest.mark.asyncio
async def test_refresh_keeps_old_data_on_failure() -> None:
    api = FakeTaskApi()
    api.kpis = [{"id": "k1", "name": "Velocity", "value": 3}]
    kpis = RemoteList(api.fetch_kpis, name="kpis")

    assert await kpis.refresh() is True
    api.kpis = []
    api.fail("fetch_kpis")

    assert await kpis.refresh() is False
    assert kpis.items == [{"id": "k1", "name": "Velocity", "value": 3}]
    assert kpis.error


def test_dedupe_by_id_keeps_latest_update_in_first_position() -> None:
    records = [
        {"id": "a", "n": "old", "updatedAt": "2025-01-01T00:00:00Z"},
        {"id": "b", "updatedAt": "2025-01-02T00:00:00Z"},
        {"_id": "a", "n": "new", "updatedAt": "2025-01-05T00:00:00Z"},
        {"id": "a", "n": "older", "updatedAt": "2024-12-01T00:00:00Z"},
        {"name": "no id"},
    ]
    out = dedupe_by_id(records)
    assert [r.get("n") for r in out] == ["new", None, None]
    assert out[1]["id"] == "b"
    assert out[2] == {"name": "no id"}


def test_dedupe_by_id_equal_timestamps_keep_first_copy() -> None:
    records = [{"id": "a", "n": 1}, {"id": "a", "n": 2}]
    assert dedupe_by_id(records) == [{"id": "a", "n": 1}]


@pytest.mark.asyncio
async def test_initiative_refresh_keeps_most_recent_copy() -> None:
    api = FakeTaskApi()
    api.initiatives = [
        {"id": "i1", "name": "old", "updatedAt": "2025-01-01T00:00:00Z"},
        {"id": "i1", "name": "new", "updatedAt": "2025-01-05T00:00:00Z"},
    ]
    initiatives = InitiativeList(api)

    assert await initiatives.refresh() is True
    assert [i.name for i in initiatives.initiatives()] == ["new"]


@pytest.mark.asyncio
async def test_initiative_create_replaces_temp_entry() -> None:
    api = FakeTaskApi()
    initiatives = InitiativeList(api)
    gate = api.hold("create_initiative")

    pending = asyncio.create_task(initiatives.create("Q3 launch"))
    await asyncio.sleep(0)
    assert [r["id"] for r in initiatives.items] == ["temp-1"]

    gate.set()
    created = await pending

    assert created is not None
    assert created.name == "Q3 launch"
    assert [r["id"] for r in initiatives.items] == [created.id]


@pytest.mark.asyncio
async def test_initiative_create_failure_removes_temp_entry() -> None:
    api = FakeTaskApi()
    initiatives = InitiativeList(api)
    api.fail("create_initiative")

    assert await initiatives.create("Doomed") is None
    assert initiatives.items == []
    assert initiatives.error

    with pytest.raises(ValidationError):
        await initiatives.create("  ")


@pytest.mark.asyncio
async def test_poller_refreshes_until_cancelled() -> None:
    api = FakeTaskApi()
    api.projects = [{"id": "p1", "name": "project1"}]
    projects = RemoteList(api.fetch_projects, name="projects")
    kpis = RemoteList(api.fetch_kpis, name="kpis")
    api.fail("fetch_kpis")

    task = asyncio.create_task(run_list_poller([kpis, projects], interval_seconds=1.0))
    for _ in range(5):
        await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert projects.loaded
    assert projects.items == [{"id": "p1", "name": "project1"}]
    assert kpis.error
