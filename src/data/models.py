"""
Routine Assistant: Persisted Document Models.

One JSON document per domain (reminders, sleep, supplements, workouts).
Every field has a default so that a document written by an older version
still loads; unknown fields are kept so that a newer version's data
survives a round trip through an older one.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EntryStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    NONE = "none"


class RecordMode(str, Enum):
    """How a new Daily Log record relates to earlier ones for the same day."""

    REPLACE = "replace"   # single-valued per (event, date)
    APPEND = "append"     # repeated occurrences accumulate


class _Document(BaseModel):
    model_config = ConfigDict(extra="allow")


class Event(_Document):
    """A recurring, time-of-day anchored registry entry.

    JSON example:
    {
        "id": "morning",
        "time_of_day": "06:30",
        "message": "Good morning! ...",
        "enabled": true,
        "weekdays": null,
        "payload": {}
    }
    """

    id: str
    time_of_day: str                      # HH:MM, 24h, zero-padded
    message: str = ""
    enabled: bool = True
    weekdays: list[int] | None = None     # 0 = Monday; None = every day
    payload: dict[str, Any] = Field(default_factory=dict)

    def scheduled_on(self, weekday: int) -> bool:
        return self.weekdays is None or weekday in self.weekdays


class LogEntry(_Document):
    status: EntryStatus = EntryStatus.NONE
    recorded_at: str = ""                 # ISO local timestamp
    payload: dict[str, Any] = Field(default_factory=dict)


class RoutineDocument(_Document):
    """Shared shape: an ordered event registry plus a date-keyed log.

    ``log`` maps ``YYYY-MM-DD`` -> event id -> entries (oldest first).
    """

    events: dict[str, Event] = Field(default_factory=dict)
    log: dict[str, dict[str, list[LogEntry]]] = Field(default_factory=dict)


class RemindersDocument(RoutineDocument):
    enabled: bool = True


class SleepSettings(_Document):
    target_sleep_hours: float = 8
    bedtime: str = "23:00"
    wake_time: str = "07:00"


class IntegrationLink(_Document):
    enabled: bool = True
    credentials: str = "***masked***"
    synced_at: str = ""


def _default_integrations() -> dict[str, IntegrationLink | None]:
    return {"whoop": None, "oura": None, "apple_health": None}


class SleepDocument(RoutineDocument):
    settings: SleepSettings = Field(default_factory=SleepSettings)
    integrations: dict[str, IntegrationLink | None] = Field(
        default_factory=_default_integrations,
    )


class SupplementSettings(_Document):
    daily_target: int = 10


class SupplementsDocument(RoutineDocument):
    settings: SupplementSettings = Field(default_factory=SupplementSettings)
    routine: dict[str, list[str]] = Field(default_factory=dict)


class WorkoutsDocument(RoutineDocument):
    pass
