"""
Routine Assistant: Daily Reminders.

Proactive reminders for the daily routine. The heartbeat host polls
``heartbeat()`` at least once a minute; a reminder fires in the minute that
equals its ``HH:MM``, otherwise a coarse hour-band check-in may fire.

Completion and skip are single-valued per reminder per day.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from src.core.compliance import ComplianceReport, InsightRule
from src.core.engine import Clock, DomainSpec, RoutineEngine, parse_bool
from src.core.heartbeat import HourBand, Trigger, coerce_now, evaluate
from src.data.models import EntryStatus, Event, RecordMode, RemindersDocument
from src.data.store import StateStore

logger = logging.getLogger(__name__)

FILE_NAME = "reminders.json"

_DEFAULT_REMINDERS: list[tuple[str, str, str]] = [
    (
        "morning", "06:30",
        "Good morning! Time to take your morning supplements. "
        "Have you done your morning routine?",
    ),
    (
        "pre_workout", "17:30",
        "Pre-workout reminder! Prepare for your evening training session. "
        "Drink water and get ready.",
    ),
    (
        "evening", "21:00",
        "Evening wind-down time. Did you complete your evening supplements? "
        "Start preparing for bed.",
    ),
    (
        "sleep_check", "22:30",
        "Sleep reminder: Aim for 8 hours tonight for optimal recovery. Lights out soon?",
    ),
]

FALLBACK_BANDS = (
    HourBand(6, "🌅 Good morning! Ready to start your day? Your supplements are waiting!"),
    HourBand(
        17,
        "💪 Pre-workout energy check! Your training session is coming up. "
        "How are you feeling?",
    ),
    HourBand(
        21,
        "🌙 Wind-down time. Did you get your evening supplements? "
        "Let's prepare for great sleep.",
    ),
    HourBand(
        22,
        "😴 Sleep time approaching. Aim for 8 hours for optimal recovery. Sweet dreams!",
    ),
)

INSIGHT_RULES = (
    InsightRule(
        lambda f: f["total_opportunities"] > 0 and f["compliance_rate"] >= 80,
        "✅ Great consistency with your daily routine. Keep it up!",
    ),
    InsightRule(
        lambda f: f["total_opportunities"] > 0 and f["compliance_rate"] < 50,
        "⚠️ Less than half of your reminders were completed. "
        "Consider adjusting reminder times to fit your day.",
    ),
    InsightRule(
        lambda f: f["skipped"] > 0 and f["skipped"] >= f["completed"],
        "⏭️ You skipped as many reminders as you completed.",
    ),
)

SPEC = DomainSpec(
    name="reminders",
    label="Reminder",
    record_mode=RecordMode.REPLACE,
    precision=0,
    default_window_days=7,
    fallback_bands=FALLBACK_BANDS,
    insight_rules=INSIGHT_RULES,
)


def default_document() -> RemindersDocument:
    events = {
        rid: Event(id=rid, time_of_day=time, message=message)
        for rid, time, message in _DEFAULT_REMINDERS
    }
    return RemindersDocument(enabled=True, events=events)


@dataclass
class ReminderStatus:
    id: str
    time: str
    message: str
    completed: bool = False
    skipped: bool = False


@dataclass
class TodayReminders:
    date: str
    timezone: str
    reminders: list[ReminderStatus] = field(default_factory=list)


class Reminders:
    """The reminders domain: registry of daily nudges plus completion log."""

    def __init__(self, engine: RoutineEngine[RemindersDocument]) -> None:
        self._engine = engine

    @classmethod
    def open(cls, data_dir: str | Path, clock: Clock = datetime.now) -> Reminders:
        store = StateStore.open(Path(data_dir) / FILE_NAME, RemindersDocument, default_document)
        return cls(RoutineEngine(store, SPEC, clock))

    @property
    def engine(self) -> RoutineEngine[RemindersDocument]:
        return self._engine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def today(self) -> TodayReminders:
        """Enabled reminders, by time, with today's completion state."""
        doc = self._engine.read()
        today = self._engine.today()
        log = self._engine.daily_log(doc)
        result = TodayReminders(
            date=today.isoformat(),
            timezone=self._engine.now().astimezone().tzname() or "",
        )
        for event in self._engine.registry(doc).list(enabled_only=True):
            status = log.get(event.id, today)
            result.reminders.append(ReminderStatus(
                id=event.id,
                time=event.time_of_day,
                message=event.message,
                completed=status is EntryStatus.COMPLETED,
                skipped=status is EntryStatus.SKIPPED,
            ))
        return result

    def list_all(self, enabled_only: bool | str = False) -> list[Event]:
        return self._engine.list_events(enabled_only=parse_bool(enabled_only))

    def compliance(self, days: int | str = 7) -> ComplianceReport:
        return self._engine.compliance(days)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def complete(self, reminder_id: str) -> str:
        self._engine.record(reminder_id, EntryStatus.COMPLETED, require_event=True)
        return f"✓ {reminder_id} reminder completed! Great job staying on track!"

    def skip(self, reminder_id: str) -> str:
        self._engine.record(reminder_id, EntryStatus.SKIPPED, require_event=True)
        return f"Skipped {reminder_id} reminder for today"

    def update_time(self, reminder_id: str, new_time: str) -> str:
        event = self._engine.update_event_time(reminder_id, new_time)
        return f"Updated {reminder_id} reminder to {event.time_of_day} ✓"

    def add(self, reminder_id: str, time: str, message: str = "") -> str:
        event = self._engine.add_event(reminder_id, time, message)
        return f'Added reminder "{event.id}" at {event.time_of_day} ✓'

    def set_enabled(self, reminder_id: str, enabled: bool | str) -> str:
        flag = parse_bool(enabled)
        self._engine.set_event_enabled(reminder_id, flag)
        return f"Reminder {reminder_id} {'enabled' if flag else 'disabled'}"

    def enable(self, reminder_id: str) -> str:
        return self.set_enabled(reminder_id, True)

    def disable(self, reminder_id: str) -> str:
        return self.set_enabled(reminder_id, False)

    def pause(self) -> str:
        """Silence every reminder and check-in without touching the registry."""
        return self._set_active(False)

    def resume(self) -> str:
        return self._set_active(True)

    def _set_active(self, active: bool) -> str:
        with self._engine.transaction() as doc:
            doc.enabled = active
        logger.info("Reminders %s", "resumed" if active else "paused")
        return "Reminders resumed ✓" if active else "Reminders paused. Use resume to turn them back on."

    # ------------------------------------------------------------------
    # Heartbeat
    # ------------------------------------------------------------------

    def heartbeat_events(self) -> list[Event]:
        doc = self._engine.read()
        if not doc.enabled:
            return []
        return self._engine.registry(doc).in_registration_order()

    def heartbeat_bands(self) -> tuple[HourBand, ...]:
        if not self._engine.read().enabled:
            return ()
        return SPEC.fallback_bands

    def heartbeat(self, now: datetime | str | None = None) -> Trigger | None:
        now = coerce_now(now, self._engine.now)
        return evaluate(
            [(SPEC.name, self.heartbeat_events())],
            [(SPEC.name, self.heartbeat_bands())],
            now,
        )

    @property
    def commands(self) -> dict[str, Callable[..., Any]]:
        return {
            "today": self.today,
            "list": self.list_all,
            "complete": self.complete,
            "skip": self.skip,
            "update_time": self.update_time,
            "add": self.add,
            "set_enabled": self.set_enabled,
            "enable": self.enable,
            "disable": self.disable,
            "compliance": self.compliance,
            "heartbeat": self.heartbeat,
            "pause": self.pause,
            "resume": self.resume,
            "status": self._engine.status_command,
            "history": self._engine.history_command,
        }
