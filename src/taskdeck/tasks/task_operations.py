# src/taskdeck/tasks/task_operations.py

"""
Task aggregate operations.

Holds the local task collection and applies changes optimistically:
- snapshot the task,
- apply the change locally (state: pending),
- call the remote API,
- keep the change (committed) or restore the snapshot (rolled-back).

Remote failures never escape as exceptions: they are logged, stored on
`self.error` and returned inside the OperationResult. Input errors
(ValidationError) are raised before any remote call.

Overlapping changes to the same task are sequenced with a per-task version
counter: a failed call only restores its snapshot when no newer local change
has touched the task since.
"""

from __future__ import annotations

import inspect
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from ..core.errors import (
    ApiError,
    NotFoundError,
    TaskdeckError,
    ValidationError,
    friendly_error_message,
)
from ..core.events import TASK_CREATED, TASK_DELETED, TASK_UPDATED, EventBus
from ..core.ports import ConfirmFn, PreferenceStore, TaskApi
from ..prefs.store import LAST_PROJECT_KEY, resolve_form_project
from .status_table import StatusAction, action_target, next_status
from .task_models import (
    COMPLETED_STATUSES,
    WIRE_FIELDS,
    Item,
    ItemKind,
    ItemStatus,
    Task,
    TaskFormData,
    TaskPriority,
    TaskStatus,
    fields_to_wire,
    parse_timestamp,
    timestamp_key,
    utc_now_iso,
)
from .task_sorter import deduplicate_tasks, sort_by_newest_first
from .task_stats import calculate_status_counts

logger = logging.getLogger(__name__)


class OperationState(StrEnum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled-back"


@dataclass(slots=True)
class OperationResult:
    """
    Outcome of one aggregate operation.

    ROLLED_BACK also covers operations that never got applied (unknown id,
    declined confirmation, failed create).
    """

    op: str
    task_id: str | None
    state: OperationState = OperationState.PENDING
    task: Task | None = None
    error: TaskdeckError | None = None
    declined: bool = False

    @property
    def ok(self) -> bool:
        return self.state == OperationState.COMMITTED


class TaskOperations:
    def __init__(
        self,
        api: TaskApi,
        *,
        events: EventBus | None = None,
        prefs: PreferenceStore | None = None,
        clock: Callable[[], str] | None = None,
        history_size: int = 100,
    ) -> None:
        self._api = api
        self._events = events
        self._prefs = prefs
        self._now = clock or utc_now_iso

        self.tasks: list[Task] = []
        self.status_counts: dict[str, int] = calculate_status_counts([])
        self.error: str | None = None
        self.history: deque[OperationResult] = deque(maxlen=max(1, history_size))

        self._versions: dict[str, int] = {}

    # ---- local collection ----

    def get(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def _index(self, task_id: str) -> int:
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                return i
        return -1

    def _set_tasks(self, tasks: list[Task]) -> None:
        self.tasks = tasks
        self.status_counts = calculate_status_counts(tasks)

    def _bump(self, task_id: str) -> int:
        version = self._versions.get(task_id, 0) + 1
        self._versions[task_id] = version
        return version

    def _put_local(self, task: Task, *, resort: bool = False) -> int:
        """Replace the task in the collection and return its new version."""
        idx = self._index(task.id)
        tasks = list(self.tasks)
        if idx == -1:
            tasks.append(task)
        else:
            tasks[idx] = task
        self._set_tasks(sort_by_newest_first(tasks) if resort else tasks)
        return self._bump(task.id)

    def _restore(self, snapshot: Task, version: int, *, resort: bool = False) -> bool:
        if self._versions.get(snapshot.id) != version:
            logger.warning(
                "Rollback of task %s skipped: a newer local change superseded it", snapshot.id
            )
            return False
        if self._index(snapshot.id) == -1:
            logger.info("Rollback of task %s skipped: task no longer in collection", snapshot.id)
            return False
        self._put_local(snapshot, resort=resort)
        return True

    def _touch(self, created_at: str) -> str:
        """Current time, never earlier than created_at."""
        now = self._now()
        if timestamp_key(now) < timestamp_key(created_at):
            return created_at
        return now

    # ---- result helpers ----

    def recent_results(self, limit: int = 10) -> list[OperationResult]:
        """Most recent operation outcomes, newest first."""
        return list(self.history)[::-1][: max(0, limit)]

    def _finish(self, result: OperationResult) -> OperationResult:
        if result.state == OperationState.COMMITTED:
            self.error = None
        self.history.append(result)
        return result

    def _fail(self, result: OperationResult, exc: TaskdeckError) -> OperationResult:
        result.state = OperationState.ROLLED_BACK
        result.error = exc
        self.error = friendly_error_message(exc)
        self.history.append(result)
        return result

    def _missing(self, result: OperationResult) -> OperationResult:
        logger.warning("%s: task %s not found in local collection", result.op, result.task_id)
        return self._fail(result, NotFoundError(f"task {result.task_id}"))

    def _emit(self, event_type: str, payload: Any) -> None:
        if self._events is not None:
            self._events.emit(event_type, payload)

    # ---- loading ----

    async def refresh_tasks(self) -> list[Task]:
        """
        Reload the collection from the API.

        On failure the current collection is kept and `self.error` is set.
        """
        try:
            raw = await self._api.fetch_tasks()
        except ApiError as e:
            logger.exception("fetch_tasks failed")
            self.error = friendly_error_message(e)
            return self.tasks

        loaded = [Task.from_dict(r) for r in raw]
        loaded = [t for t in loaded if t.id]
        self._set_tasks(sort_by_newest_first(deduplicate_tasks(loaded)))
        # Server data supersedes any in-flight snapshot.
        for task in self.tasks:
            self._bump(task.id)
        self.error = None
        logger.info("Loaded %d tasks", len(self.tasks))
        return self.tasks

    # ---- create ----

    async def add_task(self, form: TaskFormData) -> OperationResult:
        if not form.title or not form.title.strip():
            raise ValidationError("Title is required.", field="title")

        last_project = self._prefs.get(LAST_PROJECT_KEY) if self._prefs is not None else None
        form = replace(form, project=resolve_form_project(form.project, last_project))

        result = OperationResult(op="add_task", task_id=None)
        try:
            raw = await self._api.create_task(form.to_create_body(self._now()))
        except ApiError as e:
            logger.exception("create_task failed title=%r", form.title)
            return self._fail(result, e)

        created = Task.from_dict(raw)
        if not created.id:
            logger.error("create_task returned a record without id: %r", raw)
            return self._fail(result, ApiError("created task has no id"))

        self._set_tasks(sort_by_newest_first(deduplicate_tasks([*self.tasks, created])))
        self._bump(created.id)

        if self._prefs is not None and form.project:
            self._prefs.set(LAST_PROJECT_KEY, form.project)

        result.task_id = created.id
        result.task = created
        result.state = OperationState.COMMITTED
        logger.info("Task created id=%s project=%s", created.id, created.project or "-")
        self._emit(TASK_CREATED, created)
        return self._finish(result)

    # ---- generic optimistic update ----

    async def _optimistic(
        self,
        op: str,
        task_id: str,
        build: Callable[[Task], dict[str, Any]],
        *,
        resort: bool = False,
    ) -> OperationResult:
        """
        Apply `build(snapshot)` (a dict of Task attribute changes) locally,
        then PATCH the same changes remotely.
        """
        result = OperationResult(op=op, task_id=task_id)
        snapshot = self.get(task_id)
        if snapshot is None:
            return self._missing(result)

        changes = build(snapshot)
        updated = snapshot.evolve(**changes)
        version = self._put_local(updated, resort=resort)
        result.task = updated

        try:
            await self._api.update_task(task_id, fields_to_wire(changes))
        except ApiError as e:
            logger.exception("%s failed task_id=%s", op, task_id)
            self._restore(snapshot, version, resort=resort)
            result.task = self.get(task_id)
            return self._fail(result, e)

        result.state = OperationState.COMMITTED
        self._emit(TASK_UPDATED, updated)
        return self._finish(result)

    def _status_changes(self, task: Task, status: TaskStatus) -> dict[str, Any]:
        now = self._touch(task.created_at)
        changes: dict[str, Any] = {"status": status, "updated_at": now}
        if status in COMPLETED_STATUSES:
            if not task.completed_at:
                changes["completed_at"] = now
            if status == TaskStatus.REVIEWED:
                changes["reviewed_at"] = now
        elif task.completed_at:
            changes["completed_at"] = None
        return changes

    # ---- updates ----

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> OperationResult:
        """
        Partial update of arbitrary task fields (attribute names).

        A status change goes through the same completion bookkeeping as
        update_task_status; completed_at/reviewed_at cannot be set directly.
        """
        changes = _coerce_fields(fields)

        def build(task: Task) -> dict[str, Any]:
            out = dict(changes)
            if "status" in out:
                out.update(self._status_changes(task, out["status"]))
            out["updated_at"] = self._touch(out.get("created_at", task.created_at))
            return out

        resort = "created_at" in changes or "status" in changes
        return await self._optimistic("update_task", task_id, build, resort=resort)

    async def update_task_status(
        self, task_id: str, project: str, new_status: TaskStatus | str
    ) -> OperationResult:
        try:
            status = TaskStatus(new_status)
        except ValueError as e:
            raise ValidationError(f"Unknown status: {new_status}", field="status") from e

        logger.debug("Status change task_id=%s project=%s -> %s", task_id, project or "-", status)
        return await self._optimistic(
            "update_task_status",
            task_id,
            lambda task: self._status_changes(task, status),
            resort=True,
        )

    async def advance_task(self, task_id: str) -> OperationResult:
        """Move a task along its default forward transition, if it has one."""
        task = self.get(task_id)
        if task is None:
            return self._missing(OperationResult(op="advance_task", task_id=task_id))

        target = next_status(task.status)
        if target is None:
            logger.debug("Task %s in %s has no default forward action", task_id, task.status)
            result = OperationResult(
                op="advance_task", task_id=task_id, state=OperationState.COMMITTED, task=task
            )
            return self._finish(result)

        return await self.update_task_status(task_id, task.project, target)

    async def apply_action(self, task_id: str, action: StatusAction | str) -> OperationResult:
        action = StatusAction(action)
        if action == StatusAction.MARK_TESTED:
            return await self.mark_tested(task_id)
        task = self.get(task_id)
        project = task.project if task is not None else ""
        return await self.update_task_status(task_id, project, action_target(action))

    async def toggle_star(self, task_id: str) -> OperationResult:
        def build(task: Task) -> dict[str, Any]:
            return {"starred": not task.starred, "updated_at": self._touch(task.created_at)}

        return await self._optimistic("toggle_star", task_id, build)

    async def mark_tested(self, task_id: str) -> OperationResult:
        def build(task: Task) -> dict[str, Any]:
            changes = self._status_changes(task, TaskStatus.DONE)
            changes["tested"] = True
            changes["completed_at"] = changes["updated_at"]
            return changes

        return await self._optimistic("mark_tested", task_id, build, resort=True)

    async def update_task_date(self, task_id: str, new_created_at: str) -> OperationResult:
        parsed = parse_timestamp(new_created_at)
        if parsed is None:
            raise ValidationError(f"Invalid date: {new_created_at!r}", field="created_at")
        return await self.update_task(task_id, {"created_at": new_created_at})

    # ---- item approval ----

    async def _set_item_status(
        self, op: str, task_id: str, kind: ItemKind | str, item_id: str, status: ItemStatus
    ) -> OperationResult:
        kind = ItemKind.parse(kind) if isinstance(kind, str) else kind
        result = OperationResult(op=op, task_id=task_id)

        task = self.get(task_id)
        if task is None:
            return self._missing(result)

        items = task.items(kind)
        previous = next((i for i in items if i.id == item_id), None)
        if previous is None:
            logger.warning("%s: item %s not found in %s of task %s", op, item_id, kind.value, task_id)
            return self._fail(result, NotFoundError(f"item {item_id} in task {task_id}"))

        now = self._touch(task.created_at)
        changed = replace(
            previous,
            status=status,
            updated_at=now,
            approved_at=now if status == ItemStatus.APPROVED else previous.approved_at,
        )
        new_items = tuple(changed if i.id == item_id else i for i in items)
        updated = task.evolve(**{kind.value: new_items, "updated_at": now})
        self._put_local(updated)
        result.task = updated

        body = {kind.wire_key: [i.to_dict() for i in new_items], "updatedAt": now}
        try:
            await self._api.update_task(task_id, body)
        except ApiError as e:
            logger.exception("%s failed task_id=%s item_id=%s", op, task_id, item_id)
            self._restore_item(task_id, kind, previous)
            result.task = self.get(task_id)
            return self._fail(result, e)

        result.state = OperationState.COMMITTED
        self._emit(TASK_UPDATED, updated)
        return self._finish(result)

    def _restore_item(self, task_id: str, kind: ItemKind, previous: Item) -> None:
        """Put back a single item; other changes to the task are kept."""
        current = self.get(task_id)
        if current is None:
            return
        items = tuple(previous if i.id == previous.id else i for i in current.items(kind))
        self._put_local(current.evolve(**{kind.value: items}))

    async def approve_item(self, task_id: str, kind: ItemKind | str, item_id: str) -> OperationResult:
        return await self._set_item_status("approve_item", task_id, kind, item_id, ItemStatus.APPROVED)

    async def veto_item(self, task_id: str, kind: ItemKind | str, item_id: str) -> OperationResult:
        return await self._set_item_status("veto_item", task_id, kind, item_id, ItemStatus.VETOED)

    # ---- delete ----

    async def delete_task(self, task_id: str, project: str, confirm: ConfirmFn) -> OperationResult:
        """
        Remove a task after `confirm(task)` returns True.

        The task leaves the local collection before the remote delete. A 404
        from the API means it is already gone and counts as committed; any
        other failure puts the task back where it was.
        """
        result = OperationResult(op="delete_task", task_id=task_id)
        idx = self._index(task_id)
        if idx == -1:
            return self._missing(result)
        task = self.tasks[idx]

        answer = confirm(task)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.debug("Delete of task %s declined", task_id)
            result.state = OperationState.ROLLED_BACK
            result.declined = True
            result.task = task
            self.history.append(result)
            return result

        self._set_tasks([t for t in self.tasks if t.id != task_id])
        version = self._bump(task_id)

        try:
            await self._api.delete_task(task_id)
        except NotFoundError:
            logger.warning("delete_task: task %s already absent remotely", task_id)
        except ApiError as e:
            logger.exception("delete_task failed task_id=%s", task_id)
            if self._versions.get(task_id) == version and self._index(task_id) == -1:
                tasks = list(self.tasks)
                tasks.insert(min(idx, len(tasks)), task)
                self._set_tasks(tasks)
                self._bump(task_id)
            result.task = task
            return self._fail(result, e)

        self._versions.pop(task_id, None)
        result.state = OperationState.COMMITTED
        result.task = task
        logger.info("Task deleted id=%s project=%s", task_id, project or "-")
        self._emit(TASK_DELETED, {"id": task_id, "project": project})
        return self._finish(result)


# Stamped by the operations themselves.
_READ_ONLY_FIELDS = frozenset({"updated_at", "completed_at", "reviewed_at"})


def _coerce_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate attribute names and normalise enum/list values."""
    out: dict[str, Any] = {}
    for name, value in fields.items():
        if name not in WIRE_FIELDS or name in _READ_ONLY_FIELDS:
            raise ValidationError(f"Field cannot be updated: {name}", field=name)
        if name == "title" and (not value or not str(value).strip()):
            raise ValidationError("Title is required.", field="title")
        try:
            if name == "status":
                value = TaskStatus(value)
            elif name == "priority":
                value = TaskPriority(value)
            elif name == "tags":
                value = tuple(str(t) for t in value)
            elif name.endswith("_items"):
                value = tuple(v if isinstance(v, Item) else Item.from_dict(v) for v in value)
        except (TypeError, ValueError, AttributeError) as e:
            raise ValidationError(f"Invalid value for {name}: {value!r}", field=name) from e
        out[name] = value
    return out
