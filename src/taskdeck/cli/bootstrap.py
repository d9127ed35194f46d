# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires the HTTP client, preferences, event bus and remote lists into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.events import EventBus
from ..core.state import AppState
from ..core.terminology import terminology
from ..prefs.store import COMMANDS_VISIBILITY_KEY, JsonPreferenceStore, parse_visibility
from ..tasks.list_poller import InitiativeList, RemoteList, dedupe_by_id
from ..tasks.task_api import TaskApiClient
from ..tasks.task_operations import TaskOperations

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.prefs_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, api=None, prefs=None) -> AppState:
    """
    Create AppState from the provided settings.

    `api` and `prefs` may be injected (tests); otherwise the HTTP client and
    the JSON preference file from settings are used.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if api is None:
        api = TaskApiClient(
            settings.api_url,
            api_key=settings.api_key,
            timeout_seconds=settings.request_timeout_seconds,
        )
    if prefs is None:
        prefs = JsonPreferenceStore(settings.prefs_path)

    events = EventBus()
    state = AppState(
        settings=settings,
        ops=TaskOperations(api, events=events, prefs=prefs),
        events=events,
        prefs=prefs,
        initiatives=InitiativeList(api),
        projects=RemoteList(api.fetch_projects, name="projects", dedupe=dedupe_by_id),
        kpis=RemoteList(api.fetch_kpis, name="kpis"),
        terms=terminology(settings.business_case),
        commands_visible=parse_visibility(prefs.get(COMMANDS_VISIBILITY_KEY)),
        api=api,
    )
    logger.debug("State created (api=%s, business_case=%s)", settings.api_url, settings.business_case)
    return state


async def shutdown_state(state: AppState) -> None:
    aclose = getattr(state.api, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        logger.exception("Failed to close API client")
