# src/taskdeck/tasks/task_api.py

"""
HTTP adapter for the remote task store.

Implements the TaskApi and ListApi ports on top of httpx.AsyncClient.
Transport failures become NetworkError, HTTP 404 becomes NotFoundError and
any other non-2xx response becomes ApiError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import ApiError, NetworkError, NotFoundError
from ..core.ports import JsonDict

logger = logging.getLogger(__name__)


def _unwrap(payload: Any) -> Any:
    """Remote responses may be wrapped as {"data": ...}."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def _normalize_record(raw: Any) -> JsonDict:
    if not isinstance(raw, dict):
        raise ApiError(f"unexpected record type: {type(raw).__name__}")
    rec = dict(raw)
    if rec.get("_id") and not rec.get("id"):
        rec["id"] = rec["_id"]
    return rec


def _normalize_list(payload: Any) -> list[JsonDict]:
    data = _unwrap(payload)
    if not isinstance(data, list):
        raise ApiError("expected a list response")
    return [_normalize_record(r) for r in data if isinstance(r, dict)]


class TaskApiClient:
    """
    Async client for the task API.

    One httpx.AsyncClient is kept for the lifetime of this object; call
    `aclose()` (or use `async with`) on shutdown.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds, connect=min(5.0, timeout_seconds)),
            transport=transport,
        )

    async def __aenter__(self) -> TaskApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---- low-level ----

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"{method} {path} timed out") from e
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

        if resp.status_code == 404:
            raise NotFoundError(f"{method} {path}")
        if resp.is_error:
            detail = resp.text[:200] if resp.text else resp.reason_phrase
            raise ApiError(f"{method} {path}: {detail}", status_code=resp.status_code)

        logger.debug("%s %s -> %s", method, path, resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"{method} {path}: invalid JSON body", status_code=resp.status_code) from e

    # ---- tasks ----

    async def fetch_tasks(self, filters: dict[str, str] | None = None) -> list[JsonDict]:
        params = dict(filters or {})
        params.setdefault("dedup", "true")
        payload = await self._request("GET", "/tasks", params=params)
        tasks = _normalize_list(payload)
        logger.debug("Fetched %d tasks", len(tasks))
        return tasks

    async def get_task(self, task_id: str) -> JsonDict:
        payload = await self._request("GET", f"/tasks/{task_id}")
        return _normalize_record(_unwrap(payload))

    async def create_task(self, body: JsonDict) -> JsonDict:
        payload = await self._request("POST", "/tasks", json=body)
        created = _normalize_record(_unwrap(payload))
        # Some backends omit timestamps on create.
        for key in ("createdAt", "updatedAt"):
            if not created.get(key):
                logger.warning("Create response without %s; using client timestamp", key)
                created[key] = body.get(key)
        return created

    async def update_task(self, task_id: str, fields: JsonDict) -> JsonDict | None:
        payload = await self._request("PATCH", f"/tasks/{task_id}", json=fields)
        data = _unwrap(payload)
        return _normalize_record(data) if isinstance(data, dict) else None

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    # ---- simple lists ----

    async def fetch_initiatives(self) -> list[JsonDict]:
        return _normalize_list(await self._request("GET", "/initiatives"))

    async def create_initiative(self, body: JsonDict) -> JsonDict:
        return _normalize_record(_unwrap(await self._request("POST", "/initiatives", json=body)))

    async def fetch_projects(self) -> list[JsonDict]:
        return _normalize_list(await self._request("GET", "/projects"))

    async def fetch_kpis(self) -> list[JsonDict]:
        return _normalize_list(await self._request("GET", "/kpis"))
