"""
Routine Assistant: Workout Scheduler.

A weekly plan (one registry entry per weekday, scheduled on that weekday
only) plus a session log. Check-ins append sessions; ``complete`` closes
the latest one. A workout fires on the heartbeat at its time on its day.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Callable

from src.core.compliance import (
    InsightRule,
    apply_insights,
    parse_days,
    percentage,
    registry_compliance,
)
from src.core.engine import Clock, DomainSpec, RoutineEngine, parse_bool
from src.core.errors import InvalidInput, NotFound
from src.core.heartbeat import Trigger, coerce_now, evaluate
from src.data.models import EntryStatus, Event, LogEntry, RecordMode, WorkoutsDocument
from src.data.store import StateStore

logger = logging.getLogger(__name__)

FILE_NAME = "workouts.json"

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_DEFAULT_PLAN: list[tuple[str, str, str, str]] = [
    ("Monday", "18:00", "CrossFit", "Upper Body"),
    ("Tuesday", "06:30", "Gym", "Leg Day"),
    ("Wednesday", "18:00", "CrossFit", "WOD"),
    ("Thursday", "06:30", "Gym", "Cardio"),
    ("Friday", "18:00", "CrossFit", "Strength"),
    ("Saturday", "08:00", "CrossFit", "Conditioning"),
    ("Sunday", "09:00", "Recovery", "Yoga/Stretching"),
]

INSIGHT_RULES = (
    InsightRule(
        lambda f: f["scheduled_days"] > 0 and f["compliance_rate"] >= 80,
        "🏆 You hit at least 80% of your planned sessions. Outstanding!",
    ),
    InsightRule(
        lambda f: f["scheduled_days"] > 0 and f["compliance_rate"] < 50,
        "📉 Fewer than half of your planned sessions were completed. "
        "Consider a lighter weekly plan.",
    ),
    InsightRule(
        lambda f: f["total_sessions"] == 0,
        "No sessions logged in this period. Check in at your next workout!",
    ),
)

SPEC = DomainSpec(
    name="workouts",
    label="Workout",
    record_mode=RecordMode.APPEND,
    precision=1,
    default_window_days=30,
    insight_rules=INSIGHT_RULES,
)


def _workout_message(day: str, time: str, kind: str, description: str) -> str:
    detail = f": {description}" if description else ""
    return f"🏋️ {kind} time! {day} {time}{detail}"


def default_document() -> WorkoutsDocument:
    events: dict[str, Event] = {}
    for day, time, kind, description in _DEFAULT_PLAN:
        events[day] = Event(
            id=day,
            time_of_day=time,
            message=_workout_message(day, time, kind, description),
            weekdays=[WEEKDAYS.index(day)],
            payload={"type": kind, "description": description},
        )
    return WorkoutsDocument(events=events)


def parse_day(day: str) -> str:
    """Normalize a weekday name ("monday" -> "Monday")."""
    name = str(day).strip().capitalize()
    if name not in WEEKDAYS:
        raise InvalidInput(f"Invalid day. Use: {', '.join(WEEKDAYS)}")
    return name


def week_start(on: date) -> date:
    """Monday of the week containing ``on``."""
    return on - timedelta(days=on.weekday())


def _session_completed(entries: list[LogEntry]) -> bool:
    return any(e.status is EntryStatus.COMPLETED for e in entries)


@dataclass
class PlannedWorkout:
    time: str
    type: str
    description: str
    enabled: bool = True


@dataclass
class WeeklySchedule:
    week_starting: str
    workouts: dict[str, PlannedWorkout] = field(default_factory=dict)
    total_sessions: int = 0


@dataclass
class TodayWorkout:
    date: str
    day: str
    planned_workout: PlannedWorkout | None
    completed_sessions: list[dict[str, Any]] = field(default_factory=list)
    status: str = "pending"


@dataclass
class WorkoutStats:
    period: str
    total_sessions: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    consistency: float = 0
    scheduled_days: int = 0
    completed_days: int = 0
    compliance_rate: float = 0
    insights: list[str] = field(default_factory=list)


def _planned(event: Event) -> PlannedWorkout:
    return PlannedWorkout(
        time=event.time_of_day,
        type=str(event.payload.get("type", "")),
        description=str(event.payload.get("description", "")),
        enabled=event.enabled,
    )


def _session_view(entry: LogEntry) -> dict[str, Any]:
    return {"status": entry.status.value, "recorded_at": entry.recorded_at, **entry.payload}


class Workouts:
    """The workouts domain: weekly plan, gym check-ins and consistency."""

    def __init__(self, engine: RoutineEngine[WorkoutsDocument]) -> None:
        self._engine = engine

    @classmethod
    def open(cls, data_dir: str | Path, clock: Clock = datetime.now) -> Workouts:
        store = StateStore.open(Path(data_dir) / FILE_NAME, WorkoutsDocument, default_document)
        return cls(RoutineEngine(store, SPEC, clock))

    @property
    def engine(self) -> RoutineEngine[WorkoutsDocument]:
        return self._engine

    # ------------------------------------------------------------------
    # Plan
    # ------------------------------------------------------------------

    def schedule(
        self, day: str, time: str, workout_type: str, description: str = "",
    ) -> str:
        """Set (or replace) the workout planned for a weekday."""
        name = parse_day(day)
        event = self._engine.add_event(
            name,
            time,
            _workout_message(name, str(time).strip(), workout_type, description),
            weekdays=[WEEKDAYS.index(name)],
            payload={"type": workout_type, "description": description},
        )
        return f"Scheduled {workout_type} on {name} at {event.time_of_day}: {description} ✓"

    def set_enabled(self, day: str, enabled: bool | str) -> str:
        name = parse_day(day)
        flag = parse_bool(enabled)
        self._engine.set_event_enabled(name, flag)
        return f"{name} workout {'enabled' if flag else 'disabled'}"

    def enable(self, day: str) -> str:
        return self.set_enabled(day, True)

    def disable(self, day: str) -> str:
        return self.set_enabled(day, False)

    def weekly(self) -> WeeklySchedule:
        events = self._engine.registry(self._engine.read()).in_registration_order(
            enabled_only=False,
        )
        result = WeeklySchedule(week_starting=week_start(self._engine.today()).isoformat())
        for event in sorted(events, key=lambda e: _weekday_index(e.id)):
            result.workouts[event.id] = _planned(event)
            if event.enabled:
                result.total_sessions += 1
        return result

    def today(self) -> TodayWorkout:
        doc = self._engine.read()
        today = self._engine.today()
        day = WEEKDAYS[today.weekday()]
        event = doc.events.get(day)
        sessions = [
            _session_view(entry)
            for entries in self._engine.daily_log(doc).day(today).values()
            for entry in entries
        ]
        return TodayWorkout(
            date=today.isoformat(),
            day=day,
            planned_workout=_planned(event) if event is not None and event.enabled else None,
            completed_sessions=sessions,
            status="logged" if sessions else "pending",
        )

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def checkin(self, location_type: str = "Gym") -> str:
        location = str(location_type).strip() or "Gym"
        day = WEEKDAYS[self._engine.today().weekday()]
        self._engine.record(
            day,
            EntryStatus.NONE,
            {"location": location, "state": "in_progress"},
        )
        return f"Checked in at {location} 💪 Keep crushing it!"

    def complete(self) -> str:
        """Close today's most recent session."""
        today = self._engine.today()
        with self._engine.transaction() as doc:
            latest = self._engine.daily_log(doc).latest_on(today)
            if latest is None:
                raise NotFound("No active workout session found for today")
            _, entry = latest
            entry.status = EntryStatus.COMPLETED
            entry.payload["state"] = "completed"
            entry.payload["completed_at"] = self._engine.now().isoformat(timespec="seconds")
        logger.info("Workout session completed for %s", today.isoformat())
        return "Great workout! Session completed 🎉 Rest well!"

    def stats(self, days: int | str = 30) -> WorkoutStats:
        window = parse_days(days, SPEC.default_window_days)
        doc = self._engine.read()
        log = self._engine.daily_log(doc)
        today = self._engine.today()

        by_type: Counter[str] = Counter()
        start = today - timedelta(days=window - 1)
        for _, entries in log.entries_for_range(start, today):
            for session_list in entries.values():
                for session in session_list:
                    by_type[str(session.payload.get("location", "Unknown"))] += 1
        total = sum(by_type.values())

        planned = registry_compliance(
            doc.events.values(), log, today, window,
            precision=SPEC.precision, day_completed=_session_completed,
        )
        result = WorkoutStats(
            period=planned.period,
            total_sessions=total,
            by_type=dict(by_type),
            consistency=percentage(total, window, SPEC.precision),
            scheduled_days=planned.total_opportunities,
            completed_days=planned.completed,
            compliance_rate=planned.compliance_rate,
        )
        facts = {
            "scheduled_days": result.scheduled_days,
            "compliance_rate": result.compliance_rate,
            "total_sessions": total,
        }
        result.insights = apply_insights(SPEC.insight_rules, facts)
        return result

    # ------------------------------------------------------------------
    # Heartbeat
    # ------------------------------------------------------------------

    def heartbeat_events(self) -> list[Event]:
        return self._engine.heartbeat_events()

    def heartbeat(self, now: datetime | str | None = None) -> Trigger | None:
        now = coerce_now(now, self._engine.now)
        return evaluate([(SPEC.name, self.heartbeat_events())], [], now)

    @property
    def commands(self) -> dict[str, Callable[..., Any]]:
        return {
            "schedule": self.schedule,
            "checkin": self.checkin,
            "complete": self.complete,
            "weekly": self.weekly,
            "today": self.today,
            "stats": self.stats,
            "set_enabled": self.set_enabled,
            "enable": self.enable,
            "disable": self.disable,
            "heartbeat": self.heartbeat,
            "status": self._engine.status_command,
            "history": self._engine.history_command,
        }


def _weekday_index(day: str) -> int:
    return WEEKDAYS.index(day) if day in WEEKDAYS else len(WEEKDAYS)
