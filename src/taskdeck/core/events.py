# src/taskdeck/core/events.py

"""
In-process publish/subscribe for task sync events.

Operations emit task.created / task.updated / task.deleted after a remote
call commits; consumers (console, other views) subscribe to refresh.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)

TASK_CREATED = "task.created"
TASK_UPDATED = "task.updated"
TASK_DELETED = "task.deleted"


@dataclass(slots=True, frozen=True)
class Event:
    type: str
    payload: Any
    timestamp: float


EventListener = Callable[[Event], None]


class EventBus:
    def __init__(self, *, max_listeners_per_event: int = 10) -> None:
        self._listeners: dict[str, list[EventListener]] = {}
        self._max = max(1, int(max_listeners_per_event))

    def subscribe(self, event_type: str, listener: EventListener) -> Callable[[], None]:
        listeners = self._listeners.setdefault(event_type, [])
        if len(listeners) >= self._max:
            logger.warning(
                "Event %r has %d listeners (limit %d); possible listener leak",
                event_type,
                len(listeners),
                self._max,
            )
        if listener not in listeners:
            listeners.append(listener)
        logger.debug("Subscribed to %s (count=%d)", event_type, len(listeners))

        def _unsubscribe() -> None:
            self.unsubscribe(event_type, listener)

        return _unsubscribe

    def unsubscribe(self, event_type: str, listener: EventListener) -> None:
        listeners = self._listeners.get(event_type)
        if not listeners:
            return
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            del self._listeners[event_type]

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, ()))

    def emit(self, event_type: str, payload: Any = None) -> int:
        """Deliver to every listener; returns how many were notified without error."""
        listeners = list(self._listeners.get(event_type, ()))
        if not listeners:
            return 0

        if isinstance(payload, dict):
            payload = MappingProxyType(dict(payload))
        event = Event(type=event_type, payload=payload, timestamp=time.time())

        notified = 0
        for listener in listeners:
            try:
                listener(event)
                notified += 1
            except Exception:
                logger.exception("Listener failed for event %s", event_type)
        return notified
