"""
Routine Assistant: Supplement Tracker.

Intake is additive: every "I took X" appends an entry for today. The daily
compliance rate divides the number of intakes by a configured daily target
rather than by a registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

from src.core.compliance import (
    InsightRule,
    apply_insights,
    fixed_denominator_compliance,
    parse_days,
)
from src.core.engine import Clock, DomainSpec, RoutineEngine
from src.core.errors import InvalidInput
from src.data.models import EntryStatus, RecordMode, SupplementsDocument
from src.data.store import StateStore

logger = logging.getLogger(__name__)

FILE_NAME = "supplements.json"

DEFAULT_ROUTINE: dict[str, list[str]] = {
    "morning": ["Vitamin D", "Magnesium", "Omega-3", "Multivitamin"],
    "afternoon": ["Iron", "Vitamin C"],
    "evening": ["Magnesium", "Zinc", "Melatonin"],
}

INSIGHT_RULES = (
    InsightRule(
        lambda f: f["mean_daily_rate"] >= 80,
        "✅ Solid supplement consistency this period.",
    ),
    InsightRule(
        lambda f: f["days_without_intake"] * 2 >= f["window_days"],
        "⚠️ Nothing was logged on at least half of the days. "
        "Try pairing supplements with a meal you never skip.",
    ),
)

SPEC = DomainSpec(
    name="supplements",
    label="Supplement",
    record_mode=RecordMode.APPEND,
    precision=1,
    default_window_days=7,
    insight_rules=INSIGHT_RULES,
)


def default_document() -> SupplementsDocument:
    return SupplementsDocument(routine={slot: list(items) for slot, items in DEFAULT_ROUTINE.items()})


def _supplement_key(name: str) -> str:
    return name.strip().lower()


def _parse_list(supplements: str | list[str]) -> list[str]:
    if isinstance(supplements, str):
        supplements = supplements.split(",")
    return [s.strip() for s in supplements if s and s.strip()]


@dataclass
class DayIntake:
    logged: int
    compliance_rate: float
    supplements: list[str] = field(default_factory=list)


@dataclass
class SupplementReport:
    period: str
    daily_target: int
    daily_targets: dict[str, list[str]]
    compliance: dict[str, DayIntake] = field(default_factory=dict)
    average_rate: float | None = None
    insights: list[str] = field(default_factory=list)


@dataclass
class MissingSupplements:
    logged: list[str]
    missing: list[str]
    pending_count: int


class Supplements:
    """The supplements domain: routine slots plus an additive intake log."""

    def __init__(self, engine: RoutineEngine[SupplementsDocument]) -> None:
        self._engine = engine

    @classmethod
    def open(cls, data_dir: str | Path, clock: Clock = datetime.now) -> Supplements:
        store = StateStore.open(
            Path(data_dir) / FILE_NAME, SupplementsDocument, default_document,
        )
        return cls(RoutineEngine(store, SPEC, clock))

    @property
    def engine(self) -> RoutineEngine[SupplementsDocument]:
        return self._engine

    def log(self, supplement: str, time: str = "now") -> str:
        name = str(supplement).strip()
        if not name:
            raise InvalidInput("Supplement name must not be empty")
        self._engine.record(
            _supplement_key(name),
            EntryStatus.COMPLETED,
            {"supplement": name, "logged_at": time},
        )
        return f"Logged {name} ✓"

    def report(self, days: int | str = 7) -> SupplementReport:
        window = parse_days(days, SPEC.default_window_days)
        doc = self._engine.read()
        log = self._engine.daily_log(doc)
        target = doc.settings.daily_target
        summary = fixed_denominator_compliance(
            log, self._engine.today(), window, target, precision=SPEC.precision,
        )

        result = SupplementReport(
            period=summary.period,
            daily_target=target,
            daily_targets=doc.routine,
            average_rate=summary.mean_daily_rate,
        )
        for day in summary.days:
            names = [
                entry.payload.get("supplement", key)
                for key, entries in log.day(date.fromisoformat(day.date)).items()
                for entry in entries
            ]
            result.compliance[day.date] = DayIntake(
                logged=day.completed,
                compliance_rate=day.rate,
                supplements=names,
            )

        facts = {
            "mean_daily_rate": summary.mean_daily_rate or 0,
            "days_without_intake": sum(1 for d in summary.days if d.completed == 0),
            "window_days": window,
        }
        result.insights = apply_insights(SPEC.insight_rules, facts)
        return result

    def missing(self) -> MissingSupplements:
        """Routine supplements not yet logged today (case-insensitive)."""
        doc = self._engine.read()
        day = self._engine.daily_log(doc).day(self._engine.today())
        logged = [
            _supplement_key(entry.payload.get("supplement", key))
            for key, entries in day.items()
            for entry in entries
        ]
        routine = [name for items in doc.routine.values() for name in items]
        missing = [name for name in routine if _supplement_key(name) not in logged]
        return MissingSupplements(logged=logged, missing=missing, pending_count=len(missing))

    def update(self, slot: str, supplements: str | list[str]) -> str:
        """Replace the supplement list for a routine slot."""
        slot = str(slot).strip().lower()
        if not slot:
            raise InvalidInput("Routine slot must not be empty")
        items = _parse_list(supplements)
        with self._engine.transaction() as doc:
            doc.routine[slot] = items
        logger.info("Supplement routine '%s' updated: %s", slot, items)
        return f"Updated {slot} routine: {', '.join(items)}"

    def set_target(self, count: int | str) -> str:
        try:
            value = int(count)
        except (TypeError, ValueError):
            raise InvalidInput(f"Invalid daily target: {count!r}") from None
        if value < 1:
            raise InvalidInput("Daily target must be at least 1")
        with self._engine.transaction() as doc:
            doc.settings.daily_target = value
        logger.info("Supplement daily target set to %d", value)
        return f"Daily supplement target set to {value} ✓"

    @property
    def commands(self) -> dict[str, Callable[..., Any]]:
        return {
            "log": self.log,
            "report": self.report,
            "missing": self.missing,
            "update": self.update,
            "set_target": self.set_target,
            "status": self._engine.status_command,
            "history": self._engine.history_command,
        }
