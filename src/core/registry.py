"""Event Registry: named, time-anchored entries keyed by id.

Pure business logic over a document's ``events`` mapping. No I/O: the
engine wraps these calls in a store transaction.

Entries are never hard-deleted; disable them instead so that their log
history stays meaningful.
"""

from __future__ import annotations

import re
from typing import Any

from src.core.errors import InvalidInput, NotFound
from src.data.models import Event


_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_time(value: str) -> str:
    """Return ``value`` stripped if it is a zero-padded 24h ``HH:MM``.

    Raises InvalidInput otherwise.
    """
    candidate = str(value).strip()
    if not _HHMM_RE.match(candidate):
        raise InvalidInput(f"Invalid time {value!r}, expected HH:MM (24h)")
    return candidate


class EventRegistry:
    """View over an ordered ``id -> Event`` mapping.

    Dict insertion order is the registration order; the heartbeat relies
    on it, listings sort by time instead.
    """

    def __init__(self, events: dict[str, Event], label: str = "Event") -> None:
        self._events = events
        self._label = label

    def add(
        self,
        event_id: str,
        time_of_day: str,
        message: str = "",
        *,
        weekdays: list[int] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Event:
        """Insert or overwrite ``event_id``. The stored entry is enabled."""
        event_id = str(event_id).strip()
        if not event_id:
            raise InvalidInput(f"{self._label} id must not be empty")
        event = Event(
            id=event_id,
            time_of_day=validate_time(time_of_day),
            message=message,
            enabled=True,
            weekdays=weekdays,
            payload=payload or {},
        )
        self._events[event_id] = event
        return event

    def get(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    def require(self, event_id: str) -> Event:
        event = self._events.get(event_id)
        if event is None:
            raise NotFound(f'{self._label} "{event_id}" not found')
        return event

    def update_time(self, event_id: str, new_time: str) -> Event:
        """Change only the time of an existing entry."""
        new_time = validate_time(new_time)
        event = self.require(event_id)
        event.time_of_day = new_time
        return event

    def set_enabled(self, event_id: str, enabled: bool) -> Event:
        event = self.require(event_id)
        event.enabled = bool(enabled)
        return event

    def list(self, enabled_only: bool = False) -> list[Event]:
        """Entries ordered by time of day (HH:MM sorts lexicographically)."""
        events = [e for e in self._events.values() if e.enabled or not enabled_only]
        return sorted(events, key=lambda e: e.time_of_day)

    def in_registration_order(self, enabled_only: bool = True) -> list[Event]:
        return [e for e in self._events.values() if e.enabled or not enabled_only]

    def scheduled_on(self, weekday: int) -> list[Event]:
        """Enabled entries that fall on ``weekday`` (0 = Monday)."""
        return [e for e in self._events.values() if e.enabled and e.scheduled_on(weekday)]

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def __len__(self) -> int:
        return len(self._events)
