"""
Routine Assistant: Generic Routine Engine.

One engine per domain document. It binds a State Store to the Event
Registry, Daily Log, Heartbeat Trigger Engine and Compliance Aggregator,
and is parameterized by a ``DomainSpec`` (record mode, rounding,
fallback bands, insight rules). The four domains in ``src.routines`` are
thin instances of it.

The clock is injected so that "today" is computed from one consistent
local-time source per engine.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Generic, Iterator, TypeVar

from src.core.compliance import (
    ComplianceReport,
    InsightRule,
    apply_insights,
    parse_days,
    registry_compliance,
)
from src.core.daily_log import DailyLog
from src.core.errors import InvalidInput
from src.core.heartbeat import HourBand, Trigger, coerce_now, evaluate
from src.core.registry import EventRegistry
from src.data.models import EntryStatus, Event, LogEntry, RecordMode, RoutineDocument
from src.data.store import StateStore

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=RoutineDocument)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class DomainSpec:
    """What distinguishes one domain instance from another."""

    name: str                                   # "reminders"
    label: str = "Event"                        # used in NotFound messages
    record_mode: RecordMode = RecordMode.REPLACE
    precision: int = 0
    default_window_days: int = 7
    date_offset_days: int = 0                   # sleep logs against yesterday
    fallback_bands: tuple[HourBand, ...] = ()
    insight_rules: tuple[InsightRule, ...] = ()


class RoutineEngine(Generic[DocT]):
    """Read-modify-write operations over one domain document."""

    def __init__(
        self,
        store: StateStore[DocT],
        spec: DomainSpec,
        clock: Clock = datetime.now,
    ) -> None:
        self._store = store
        self._spec = spec
        self._clock = clock

    @property
    def spec(self) -> DomainSpec:
        return self._spec

    @property
    def store(self) -> StateStore[DocT]:
        return self._store

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    def log_date(self) -> date:
        """Calendar date a record made right now is filed under."""
        return self.today() + timedelta(days=self._spec.date_offset_days)

    # ------------------------------------------------------------------
    # Document access
    # ------------------------------------------------------------------

    def read(self) -> DocT:
        return self._store.load()

    @contextmanager
    def transaction(self) -> Iterator[DocT]:
        with self._store.transaction() as doc:
            yield doc

    def registry(self, doc: DocT) -> EventRegistry:
        return EventRegistry(doc.events, label=self._spec.label)

    def daily_log(self, doc: DocT) -> DailyLog:
        return DailyLog(doc.log, mode=self._spec.record_mode)

    # ------------------------------------------------------------------
    # Event Registry
    # ------------------------------------------------------------------

    def add_event(
        self,
        event_id: str,
        time_of_day: str,
        message: str = "",
        *,
        weekdays: list[int] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Event:
        with self.transaction() as doc:
            event = self.registry(doc).add(
                event_id, time_of_day, message, weekdays=weekdays, payload=payload,
            )
        logger.info(
            "%s: %s '%s' set at %s", self._spec.name, self._spec.label.lower(),
            event.id, event.time_of_day,
        )
        return event

    def update_event_time(self, event_id: str, new_time: str) -> Event:
        with self.transaction() as doc:
            event = self.registry(doc).update_time(event_id, new_time)
        logger.info(
            "%s: '%s' moved to %s", self._spec.name, event_id, event.time_of_day,
        )
        return event

    def set_event_enabled(self, event_id: str, enabled: bool) -> Event:
        with self.transaction() as doc:
            event = self.registry(doc).set_enabled(event_id, enabled)
        logger.info(
            "%s: '%s' %s", self._spec.name, event_id,
            "enabled" if enabled else "disabled",
        )
        return event

    def list_events(self, enabled_only: bool = False) -> list[Event]:
        return self.registry(self.read()).list(enabled_only=enabled_only)

    def get_event(self, event_id: str) -> Event | None:
        return self.registry(self.read()).get(event_id)

    # ------------------------------------------------------------------
    # Daily Log
    # ------------------------------------------------------------------

    def record(
        self,
        event_id: str,
        status: EntryStatus,
        payload: dict[str, Any] | None = None,
        *,
        on_date: date | None = None,
        require_event: bool = False,
        mode: RecordMode | None = None,
    ) -> LogEntry:
        """Record a status for ``event_id``, dated per the domain's offset."""
        when = on_date or self.log_date()
        with self.transaction() as doc:
            if require_event:
                self.registry(doc).require(event_id)
            entry = self.daily_log(doc).record(
                event_id, when, status, payload,
                recorded_at=self.now(), mode=mode,
            )
        logger.info(
            "%s: '%s' recorded as %s for %s",
            self._spec.name, event_id, entry.status.value, when.isoformat(),
        )
        return entry

    def status(self, event_id: str, on_date: date | None = None) -> EntryStatus | None:
        return self.daily_log(self.read()).get(event_id, on_date or self.log_date())

    def entries_for_range(
        self, start: date, end: date,
    ) -> list[tuple[str, dict[str, list[LogEntry]]]]:
        return self.daily_log(self.read()).entries_for_range(start, end)

    # Command-surface forms of the two reads above (primitive arguments).

    def status_command(self, event_id: str, on_date: str = "") -> dict[str, Any]:
        """Latest status for ``event_id`` on ``on_date`` (default: log date)."""
        when = parse_date(on_date) if on_date else self.log_date()
        status = self.status(event_id, when)
        return {
            "event_id": event_id,
            "date": when.isoformat(),
            "status": status.value if status is not None else None,
        }

    def history_command(self, start: str, end: str) -> dict[str, dict[str, list[LogEntry]]]:
        """Logged days in ``[start, end]`` (``YYYY-MM-DD``), ascending."""
        lo, hi = parse_date(start), parse_date(end)
        if lo > hi:
            raise InvalidInput(f"Start date {start} is after end date {end}")
        return dict(self.entries_for_range(lo, hi))

    # ------------------------------------------------------------------
    # Heartbeat
    # ------------------------------------------------------------------

    def heartbeat_events(self) -> list[Event]:
        """Enabled events in registration order (first match wins)."""
        return self.registry(self.read()).in_registration_order()

    def heartbeat(self, now: datetime | str | None = None) -> Trigger | None:
        """At most one trigger: a due registry event, else a fallback band."""
        now = coerce_now(now, self.now)
        events = self.heartbeat_events()
        return evaluate(
            [(self._spec.name, events)],
            [(self._spec.name, self._spec.fallback_bands)],
            now,
        )

    # ------------------------------------------------------------------
    # Compliance
    # ------------------------------------------------------------------

    def compliance(
        self,
        days: int | str | None = None,
        day_completed: Callable[[list[LogEntry]], bool] | None = None,
    ) -> ComplianceReport:
        window = parse_days(days, self._spec.default_window_days)
        doc = self.read()
        report = registry_compliance(
            doc.events.values(),
            self.daily_log(doc),
            self.today(),
            window,
            precision=self._spec.precision,
            day_completed=day_completed,
        )
        report.insights = apply_insights(self._spec.insight_rules, report_facts(report))
        return report


def report_facts(report: ComplianceReport) -> dict[str, Any]:
    """Flat numbers an insight predicate may look at."""
    return {
        "completed": report.completed,
        "skipped": report.skipped,
        "total_opportunities": report.total_opportunities,
        "compliance_rate": report.compliance_rate,
        "mean_daily_rate": report.mean_daily_rate,
        "days_on_target": report.days_on_target,
        "window_days": len(report.days),
    }


def parse_date(value: date | str) -> date:
    """Coerce a ``YYYY-MM-DD`` command argument."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidInput(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


_TRUE = {"1", "true", "yes", "on", "enable", "enabled"}
_FALSE = {"0", "false", "no", "off", "disable", "disabled"}


def parse_bool(value: bool | int | str) -> bool:
    """Coerce a primitive command argument into a flag."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise InvalidInput(f"Expected true/false, got {value!r}")
