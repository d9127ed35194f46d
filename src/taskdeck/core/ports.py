# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the remote API, preference storage and confirmation UI swappable
and makes testing easier.
"""

from typing import Any, Awaitable, Callable, Protocol

JsonDict = dict[str, Any]


class TaskApi(Protocol):
    """Remote document-store CRUD for tasks. Records are camelCase dicts."""

    async def fetch_tasks(self, filters: dict[str, str] | None = None) -> list[JsonDict]: ...
    async def get_task(self, task_id: str) -> JsonDict: ...
    async def create_task(self, body: JsonDict) -> JsonDict: ...
    async def update_task(self, task_id: str, fields: JsonDict) -> JsonDict | None: ...
    async def delete_task(self, task_id: str) -> None: ...


class ListApi(Protocol):
    """Simple list/create endpoints (initiatives, projects, KPIs)."""

    async def fetch_initiatives(self) -> list[JsonDict]: ...
    async def create_initiative(self, body: JsonDict) -> JsonDict: ...
    async def fetch_projects(self) -> list[JsonDict]: ...
    async def fetch_kpis(self) -> list[JsonDict]: ...


class PreferenceStore(Protocol):
    """Key-value string store for UI preferences."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


# Asked before destructive actions; receives the task, returns True to proceed.
ConfirmFn = Callable[[Any], bool | Awaitable[bool]]
