# src/taskdeck/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.list_poller import InitiativeList, RemoteList
from ..tasks.task_filter import TaskView
from ..tasks.task_operations import TaskOperations
from .events import EventBus
from .ports import PreferenceStore


@dataclass
class AppState:
    """Everything a connector needs; built by cli.bootstrap."""

    settings: Any

    ops: TaskOperations
    events: EventBus
    prefs: PreferenceStore

    initiatives: InitiativeList
    projects: RemoteList
    kpis: RemoteList

    terms: dict[str, str] = field(default_factory=dict)
    view: TaskView = field(default_factory=TaskView)
    commands_visible: bool = True

    # Closes the HTTP client; set by the composition root.
    api: Any = None

    def remote_lists(self) -> list[RemoteList]:
        return [self.initiatives, self.projects, self.kpis]
