"""Compliance Aggregator: rolling statistics over a sliding window of days.

The window is ``[today - N + 1, today]`` inclusive, enumerated newest
first. Rates are percentages (0-100) rounded half-up to a per-domain
precision; precision 0 yields ints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Iterable, Mapping, Sequence

from src.core.daily_log import DailyLog
from src.core.errors import InvalidInput
from src.data.models import EntryStatus, Event, LogEntry

MAX_WINDOW_DAYS = 366


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class DayCompliance:
    date: str
    completed: int
    skipped: int
    total: int
    rate: float


@dataclass
class EventCompliance:
    event_id: str
    completed: int = 0
    skipped: int = 0
    total_opportunities: int = 0
    compliance_rate: float = 0


@dataclass
class ComplianceReport:
    period: str
    start: str
    end: str
    days: list[DayCompliance] = field(default_factory=list)
    events: dict[str, EventCompliance] = field(default_factory=dict)
    completed: int = 0
    skipped: int = 0
    total_opportunities: int = 0
    compliance_rate: float = 0
    mean_daily_rate: float | None = None
    days_on_target: int = 0
    insights: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class InsightRule:
    """A guarded message: emitted when ``predicate(facts)`` is true."""

    predicate: Callable[[Mapping[str, Any]], bool]
    message: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_days(days: int | str, default: int) -> int:
    """Coerce a window size from a primitive argument."""
    if days is None or days == "":
        return default
    try:
        value = int(days)
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid number of days: {days!r}") from None
    if not 1 <= value <= MAX_WINDOW_DAYS:
        raise InvalidInput(f"Number of days must be between 1 and {MAX_WINDOW_DAYS}")
    return value


def window_dates(today: date, days: int) -> list[date]:
    """``[today, today-1, ..., today-days+1]``."""
    return [today - timedelta(days=i) for i in range(days)]


def round_to(value: float, precision: int) -> float:
    quantum = Decimal(1).scaleb(-precision)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if precision == 0 else float(rounded)


def percentage(part: float, whole: float, precision: int) -> float:
    if whole <= 0:
        return round_to(0, precision)
    return round_to(part / whole * 100, precision)


def mean(values: Sequence[float], precision: int) -> float | None:
    if not values:
        return None
    return round_to(sum(values) / len(values), precision)


def apply_insights(rules: Iterable[InsightRule], facts: Mapping[str, Any]) -> list[str]:
    """Every matching rule emits; rules are not mutually exclusive."""
    return [rule.message for rule in rules if rule.predicate(facts)]


def _period(days: int) -> str:
    return f"Last {days} days" if days != 1 else "Today"


# ---------------------------------------------------------------------------
# Aggregations
# ---------------------------------------------------------------------------


def registry_compliance(
    events: Iterable[Event],
    log: DailyLog,
    today: date,
    days: int,
    precision: int = 0,
    day_completed: Callable[[list[LogEntry]], bool] | None = None,
) -> ComplianceReport:
    """Join enabled registry entries against the log for each window date.

    An opportunity is one enabled event scheduled on one date. Disabled
    events contribute nothing. ``day_completed`` decides whether a day's
    entries for an event count as done (default: latest status completed).
    """
    if day_completed is None:
        day_completed = _latest_completed
    enabled = [e for e in events if e.enabled]
    dates = window_dates(today, days)
    report = ComplianceReport(
        period=_period(days),
        start=dates[-1].isoformat(),
        end=dates[0].isoformat(),
        events={e.id: EventCompliance(event_id=e.id) for e in enabled},
    )

    daily_rates: list[float] = []
    for d in dates:
        done = skipped = total = 0
        for event in enabled:
            if not event.scheduled_on(d.weekday()):
                continue
            stats = report.events[event.id]
            stats.total_opportunities += 1
            total += 1
            entries = log.entries(event.id, d)
            if entries and day_completed(entries):
                stats.completed += 1
                done += 1
            elif entries and entries[-1].status is EntryStatus.SKIPPED:
                stats.skipped += 1
                skipped += 1
        rate = percentage(done, total, precision)
        report.days.append(DayCompliance(d.isoformat(), done, skipped, total, rate))
        if total:
            daily_rates.append(rate)
            if done == total:
                report.days_on_target += 1

    for stats in report.events.values():
        stats.compliance_rate = percentage(
            stats.completed, stats.total_opportunities, precision,
        )
        report.completed += stats.completed
        report.skipped += stats.skipped
        report.total_opportunities += stats.total_opportunities

    report.compliance_rate = percentage(
        report.completed, report.total_opportunities, precision,
    )
    report.mean_daily_rate = mean(daily_rates, precision)
    return report


def fixed_denominator_compliance(
    log: DailyLog,
    today: date,
    days: int,
    denominator: int,
    precision: int = 1,
    on_target_rate: float = 100,
) -> ComplianceReport:
    """Per-date rate = entries logged that day / a configured constant.

    Dates without any entries are filled in as zero.
    """
    dates = window_dates(today, days)
    report = ComplianceReport(
        period=_period(days),
        start=dates[-1].isoformat(),
        end=dates[0].isoformat(),
    )
    daily_rates: list[float] = []
    for d in dates:
        logged = sum(len(entries) for entries in log.day(d).values())
        rate = percentage(logged, denominator, precision)
        report.days.append(DayCompliance(d.isoformat(), logged, 0, denominator, rate))
        daily_rates.append(rate)
        report.completed += logged
        report.total_opportunities += denominator
        if rate >= on_target_rate:
            report.days_on_target += 1

    report.compliance_rate = percentage(
        report.completed, report.total_opportunities, precision,
    )
    report.mean_daily_rate = mean(daily_rates, precision)
    return report


def collect_payload(
    log: DailyLog,
    event_id: str,
    today: date,
    days: int,
) -> dict[str, dict[str, Any]]:
    """Latest payload per window date for one event id (dates ascending)."""
    dates = window_dates(today, days)
    collected: dict[str, dict[str, Any]] = {}
    for day, entries in log.entries_for_range(dates[-1], dates[0]):
        if entries.get(event_id):
            collected[day] = dict(entries[event_id][-1].payload)
    return collected


def _latest_completed(entries: list[LogEntry]) -> bool:
    return entries[-1].status is EntryStatus.COMPLETED
