# src/taskdeck/core/terminology.py

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class BusinessCase(StrEnum):
    TASKS = "tasks"
    SUPPORT = "support"
    RECRUITMENT = "recruitment"
    PROJECT = "project"

    @classmethod
    def from_env(cls, raw: str | None) -> BusinessCase:
        if not raw:
            return cls.TASKS
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.TASKS


DEFAULT_TERMS: dict[BusinessCase, dict[str, str]] = {
    BusinessCase.TASKS: {
        "item": "Task",
        "items": "Tasks",
        "project": "Project",
        "initiative": "Initiative",
        "new_item": "New Task",
    },
    BusinessCase.SUPPORT: {
        "item": "Ticket",
        "items": "Tickets",
        "project": "Queue",
        "initiative": "Escalation",
        "new_item": "New Ticket",
    },
    BusinessCase.RECRUITMENT: {
        "item": "Candidate",
        "items": "Candidates",
        "project": "Position",
        "initiative": "Hiring Drive",
        "new_item": "New Candidate",
    },
    BusinessCase.PROJECT: {
        "item": "Deliverable",
        "items": "Deliverables",
        "project": "Workstream",
        "initiative": "Milestone",
        "new_item": "New Deliverable",
    },
}


def terminology(
    case: BusinessCase | str = BusinessCase.TASKS,
    overrides: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Labels for a business case; overrides win and may add new keys."""
    terms = dict(DEFAULT_TERMS[BusinessCase(case)])
    if overrides:
        terms.update(overrides)
    return terms
