# tests/test_task_api.py

from __future__ import annotations

import json

import httpx
import pytest

from taskdeck.core.errors import ApiError, NetworkError, NotFoundError
from taskdeck.tasks.task_api import TaskApiClient


def _client(handler) -> TaskApiClient:
    return TaskApiClient(
        "http://tasks.test/api/",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_fetch_tasks_sends_key_and_dedup_and_normalizes_ids() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [{"_id": "abc", "title": "One"}, "junk"]})

    async with _client(handler) as api:
        tasks = await api.fetch_tasks()

    assert tasks == [{"_id": "abc", "id": "abc", "title": "One"}]
    req = seen[0]
    assert req.url.path == "/api/tasks"
    assert req.url.params["dedup"] == "true"
    assert req.headers["X-API-Key"] == "secret"


@pytest.mark.asyncio
async def test_create_task_fills_missing_timestamps_from_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(201, json={"id": "n1", "title": body["title"]})

    async with _client(handler) as api:
        created = await api.create_task(
            {"title": "New", "createdAt": "2025-01-01T00:00:00Z", "updatedAt": "2025-01-01T00:00:00Z"}
        )

    assert created["id"] == "n1"
    assert created["createdAt"] == "2025-01-01T00:00:00Z"


@pytest.mark.asyncio
async def test_update_and_delete_use_expected_methods() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json={"id": "t1", "status": "done"})

    async with _client(handler) as api:
        updated = await api.update_task("t1", {"status": "done"})
        assert await api.delete_task("t1") is None

    assert updated == {"id": "t1", "status": "done"}
    assert seen == [("PATCH", "/api/tasks/t1"), ("DELETE", "/api/tasks/t1")]


@pytest.mark.asyncio
async def test_http_errors_are_mapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/missing"):
            return httpx.Response(404, json={"error": "nope"})
        return httpx.Response(500, text="kaboom")

    async with _client(handler) as api:
        with pytest.raises(NotFoundError):
            await api.get_task("missing")
        with pytest.raises(ApiError) as exc_info:
            await api.get_task("broken")

    assert exc_info.value.status_code == 500
    assert not isinstance(exc_info.value, NotFoundError)


@pytest.mark.asyncio
async def test_transport_failure_becomes_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as api:
        with pytest.raises(NetworkError):
            await api.fetch_kpis()


@pytest.mark.asyncio
async def test_invalid_json_is_an_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>", headers={"Content-Type": "text/html"})

    async with _client(handler) as api:
        with pytest.raises(ApiError):
            await api.fetch_projects()
