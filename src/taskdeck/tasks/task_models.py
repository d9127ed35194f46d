# src/taskdeck/tasks/task_models.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class TaskStatus(StrEnum):
    """
    Task workflow status.

    Values are the wire strings used by the remote store.
    """

    INBOX = "inbox"
    BRAINSTORM = "brainstorm"
    PROPOSED = "proposed"
    BACKLOG = "backlog"
    MAYBE = "maybe"
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    DONE = "done"
    REVIEWED = "reviewed"
    ARCHIVED = "archived"

    @classmethod
    def from_wire(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            logger.warning("Unknown task status %r, treating it as %s", raw, cls.TODO.value)
            return cls.TODO


COMPLETED_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.REVIEWED})


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_wire(cls, raw: str | None) -> TaskPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


class ItemStatus(StrEnum):
    PROPOSED = "proposed"
    APPROVED = "approved"
    VETOED = "vetoed"


class ItemKind(StrEnum):
    """Which item list of a task an item lives in (value = Task attribute)."""

    REQUIREMENT = "requirement_items"
    TECHNICAL_PLAN = "technical_plan_items"
    NEXT_STEP = "next_step_items"

    @property
    def wire_key(self) -> str:
        return _ITEM_WIRE_KEYS[self]

    @classmethod
    def parse(cls, raw: str) -> ItemKind:
        """Accept short console names (req/plan/next) as well as the values."""
        key = (raw or "").strip().lower()
        aliases = {
            "req": cls.REQUIREMENT,
            "requirement": cls.REQUIREMENT,
            "requirements": cls.REQUIREMENT,
            "plan": cls.TECHNICAL_PLAN,
            "technical-plan": cls.TECHNICAL_PLAN,
            "next": cls.NEXT_STEP,
            "next-step": cls.NEXT_STEP,
            "next-steps": cls.NEXT_STEP,
        }
        if key in aliases:
            return aliases[key]
        return cls(key)


_ITEM_WIRE_KEYS = {
    ItemKind.REQUIREMENT: "requirementItems",
    ItemKind.TECHNICAL_PLAN: "technicalPlanItems",
    ItemKind.NEXT_STEP: "nextStepItems",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(raw: str | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Naive values are taken as UTC. Returns None for empty or malformed input.
    """
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(str(raw).strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def timestamp_key(raw: str | None) -> float:
    """Sortable epoch seconds for a timestamp string (0.0 when missing)."""
    dt = parse_timestamp(raw)
    return dt.timestamp() if dt is not None else 0.0


@dataclass(slots=True, frozen=True)
class Item:
    id: str
    content: str
    status: ItemStatus = ItemStatus.PROPOSED
    created_at: str = ""
    updated_at: str = ""
    approved_at: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Item:
        try:
            status = ItemStatus(raw.get("status") or "proposed")
        except ValueError:
            status = ItemStatus.PROPOSED
        return cls(
            id=str(raw.get("id") or raw.get("_id") or ""),
            content=str(raw.get("content") or ""),
            status=status,
            created_at=str(raw.get("createdAt") or ""),
            updated_at=str(raw.get("updatedAt") or ""),
            approved_at=raw.get("approvedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "content": self.content,
            "status": self.status.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.approved_at:
            out["approvedAt"] = self.approved_at
        return out


def _items(raw: Any) -> tuple[Item, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(Item.from_dict(x) for x in raw if isinstance(x, dict))


def _tags(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, str):
        return tuple(t.strip() for t in raw.split(",") if t.strip())
    if isinstance(raw, (list, tuple)):
        return tuple(str(t) for t in raw)
    return ()


@dataclass(slots=True, frozen=True)
class Task:
    """
    A task as held in the local collection.

    Instances are immutable; operations build updated copies with `evolve`
    so snapshots taken before an optimistic update stay intact.
    """

    id: str
    title: str
    status: TaskStatus
    priority: TaskPriority
    created_at: str
    updated_at: str

    description: str = ""
    project: str = ""
    initiative: str | None = None
    tags: tuple[str, ...] = ()
    starred: bool = False
    tested: bool = False

    completed_at: str | None = None
    reviewed_at: str | None = None

    requirement_items: tuple[Item, ...] = ()
    technical_plan_items: tuple[Item, ...] = ()
    next_step_items: tuple[Item, ...] = ()

    @property
    def is_completed(self) -> bool:
        return self.status in COMPLETED_STATUSES

    def items(self, kind: ItemKind) -> tuple[Item, ...]:
        return getattr(self, kind.value)

    def evolve(self, **changes: Any) -> Task:
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """Build a Task from a remote record (camelCase, `_id` tolerated)."""
        created = str(raw.get("createdAt") or "")
        return cls(
            id=str(raw.get("_id") or raw.get("id") or ""),
            title=str(raw.get("title") or ""),
            status=TaskStatus.from_wire(raw.get("status")),
            priority=TaskPriority.from_wire(raw.get("priority")),
            created_at=created,
            updated_at=str(raw.get("updatedAt") or created),
            description=str(raw.get("description") or ""),
            project=str(raw.get("project") or ""),
            initiative=raw.get("initiative") or None,
            tags=_tags(raw.get("tags")),
            starred=bool(raw.get("starred", False)),
            tested=bool(raw.get("tested", False)),
            completed_at=raw.get("completedAt") or None,
            reviewed_at=raw.get("reviewedAt") or None,
            requirement_items=_items(raw.get("requirementItems")),
            technical_plan_items=_items(raw.get("technicalPlanItems")),
            next_step_items=_items(raw.get("nextStepItems")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "project": self.project,
            "initiative": self.initiative,
            "tags": list(self.tags),
            "starred": self.starred,
            "tested": self.tested,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "completedAt": self.completed_at,
            "reviewedAt": self.reviewed_at,
            "requirementItems": [i.to_dict() for i in self.requirement_items],
            "technicalPlanItems": [i.to_dict() for i in self.technical_plan_items],
            "nextStepItems": [i.to_dict() for i in self.next_step_items],
        }


# Task attribute -> wire key, for partial updates.
WIRE_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "project": "project",
    "initiative": "initiative",
    "tags": "tags",
    "starred": "starred",
    "tested": "tested",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "completed_at": "completedAt",
    "reviewed_at": "reviewedAt",
    "requirement_items": "requirementItems",
    "technical_plan_items": "technicalPlanItems",
    "next_step_items": "nextStepItems",
}


def fields_to_wire(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert Task attribute changes into a camelCase PATCH body."""
    out: dict[str, Any] = {}
    for name, value in fields.items():
        key = WIRE_FIELDS.get(name)
        if key is None:
            raise KeyError(f"unknown task field: {name}")
        if isinstance(value, StrEnum):
            value = value.value
        elif isinstance(value, tuple):
            value = [v.to_dict() if isinstance(v, Item) else v for v in value]
        out[key] = value
    return out


@dataclass(slots=True)
class TaskFormData:
    """Input of the add-task form."""

    title: str
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    project: str = ""
    status: TaskStatus = TaskStatus.TODO
    initiative: str = ""
    tags: str = ""

    def tag_list(self) -> list[str]:
        return [t.strip() for t in self.tags.split(",") if t.strip()]

    def to_create_body(self, now_iso: str) -> dict[str, Any]:
        project = "" if self.project == "none" else self.project
        return {
            "title": self.title.strip(),
            "description": self.description,
            "priority": self.priority.value,
            "project": project,
            "status": self.status.value,
            "initiative": self.initiative,
            "tags": self.tag_list(),
            "createdAt": now_iso,
            "updatedAt": now_iso,
        }


@dataclass(slots=True, frozen=True)
class Initiative:
    id: str
    name: str
    description: str = ""
    status: str = "not-started"
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: str = ""
    updated_at: str = ""
    meta: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Initiative:
        created = str(raw.get("createdAt") or "")
        known = {"id", "_id", "name", "description", "status", "priority", "createdAt", "updatedAt"}
        return cls(
            id=str(raw.get("_id") or raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            description=str(raw.get("description") or ""),
            status=str(raw.get("status") or "not-started"),
            priority=TaskPriority.from_wire(raw.get("priority")),
            created_at=created,
            updated_at=str(raw.get("updatedAt") or created),
            meta={k: v for k, v in raw.items() if k not in known},
        )
