# src/taskdeck/prefs/store.py

"""
UI preference storage.

Two small string preferences survive restarts: the last project chosen in
the add-task form and whether the commands panel is shown. Callers receive
the current value as a parameter; only the composition root touches a store.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

LAST_PROJECT_KEY = "taskForm_lastProject"
COMMANDS_VISIBILITY_KEY = "task_commands_visibility"


class MemoryPreferenceStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)


class JsonPreferenceStore:
    """
    Preferences in a small JSON file.

    Reads are served from memory; each write rewrites the file atomically
    (tmp + os.replace). A missing or corrupt file starts empty.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read preferences from %s; starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if isinstance(v, (str, int, float, bool))}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
            with contextlib.suppress(OSError):
                os.chmod(self._path, 0o600)
        except OSError:
            logger.exception("Failed to save preferences to %s", self._path)


def resolve_form_project(form_project: str, last_project: str | None) -> str:
    """Project for a new task: the form value, else the remembered one."""
    if form_project and form_project.strip():
        return form_project.strip()
    return (last_project or "").strip()


def parse_visibility(raw: str | None, default: bool = True) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def toggle_visibility(current: bool) -> str:
    """New stored value after toggling the commands panel."""
    return "false" if current else "true"
