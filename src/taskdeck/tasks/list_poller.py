# src/taskdeck/tasks/list_poller.py

"""
Read-mostly remote lists (initiatives, projects, KPIs).

Each RemoteList keeps the last good snapshot: a failed refresh leaves the
data untouched and only records the error. `run_list_poller` refreshes a set
of lists on a fixed interval until cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from ..core.errors import ApiError, ValidationError, friendly_error_message
from ..core.ports import JsonDict, ListApi
from .task_models import Initiative, timestamp_key, utc_now_iso

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[list[JsonDict]]]


def dedupe_by_id(records: Sequence[JsonDict]) -> list[JsonDict]:
    """
    One record per id; the copy with the latest updatedAt wins.

    The survivor takes the slot of the id's first occurrence and equal
    timestamps keep the earlier copy. Records without id are kept as is.
    """
    out: list[JsonDict] = []
    slots: dict[str, int] = {}
    for rec in records:
        rid = str(rec.get("id") or rec.get("_id") or "")
        if not rid:
            out.append(rec)
            continue
        idx = slots.get(rid)
        if idx is None:
            slots[rid] = len(out)
            out.append(rec)
        elif timestamp_key(rec.get("updatedAt")) > timestamp_key(out[idx].get("updatedAt")):
            out[idx] = rec
    return out


class RemoteList:
    def __init__(
        self,
        fetch: Fetcher,
        *,
        name: str,
        dedupe: Callable[[Sequence[JsonDict]], list[JsonDict]] | None = None,
    ) -> None:
        self.name = name
        self._fetch = fetch
        self._dedupe = dedupe
        self.items: list[JsonDict] = []
        self.error: str | None = None
        self.loaded = False

    async def refresh(self) -> bool:
        """Returns True when new data was loaded."""
        try:
            records = await self._fetch()
        except ApiError as e:
            logger.warning("Refresh of %s failed: %s (keeping %d items)", self.name, e, len(self.items))
            self.error = friendly_error_message(e)
            return False

        if self._dedupe is not None:
            records = self._dedupe(records)
        self.items = list(records)
        self.error = None
        self.loaded = True
        logger.debug("Refreshed %s: %d items", self.name, len(self.items))
        return True


class InitiativeList(RemoteList):
    """Initiatives with optimistic create."""

    def __init__(self, api: ListApi, *, clock: Callable[[], str] = utc_now_iso) -> None:
        super().__init__(api.fetch_initiatives, name="initiatives", dedupe=dedupe_by_id)
        self._api = api
        self._now = clock
        self._temp_seq = 0

    def initiatives(self) -> list[Initiative]:
        return [Initiative.from_dict(r) for r in self.items]

    async def create(self, name: str, description: str = "", **extra: Any) -> Initiative | None:
        """
        Insert a temporary entry, then swap it for the server record.

        Returns None (and drops the temporary entry) when the API fails.
        """
        if not name or not name.strip():
            raise ValidationError("Initiative name is required.", field="name")

        now = self._now()
        self._temp_seq += 1
        temp_id = f"temp-{self._temp_seq}"
        body: JsonDict = {
            "name": name.strip(),
            "description": description,
            "status": "not-started",
            "priority": "medium",
            **extra,
        }
        temp = {"id": temp_id, "createdAt": now, "updatedAt": now, **body}
        self.items = [*self.items, temp]

        try:
            created = await self._api.create_initiative(body)
        except ApiError as e:
            logger.exception("create_initiative failed name=%r", name)
            self.items = [r for r in self.items if r.get("id") != temp_id]
            self.error = friendly_error_message(e)
            return None

        self.items = dedupe_by_id([created if r.get("id") == temp_id else r for r in self.items])
        self.error = None
        return Initiative.from_dict(created)


async def run_list_poller(
    lists: Sequence[RemoteList],
    *,
    interval_seconds: float = 60.0,
) -> None:
    """
    Refresh every list, then sleep interval_seconds; repeat.

    A failing list never stops the loop. To stop the poller, cancel the task.
    """
    sleep_s = max(1.0, float(interval_seconds))

    while True:
        for remote in lists:
            try:
                await remote.refresh()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Unexpected error refreshing %s", remote.name)

        await asyncio.sleep(sleep_s)
