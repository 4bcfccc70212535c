"""
Routine Assistant: Sleep & Recovery.

Sleep is reported the morning after, so every entry is filed under
"last night" (today - 1). One entry per night; logging again replaces it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from src.core.compliance import (
    InsightRule,
    apply_insights,
    collect_payload,
    mean,
    parse_days,
    percentage,
)
from src.core.engine import Clock, DomainSpec, RoutineEngine
from src.core.errors import InvalidInput
from src.data.models import EntryStatus, RecordMode, SleepDocument
from src.data.store import StateStore
from src.integrations.health_devices import display_name, link_device

logger = logging.getLogger(__name__)

FILE_NAME = "sleep.json"
SLEEP_EVENT = "sleep"

_AVERAGE_PRECISION = 1
_RATE_PRECISION = 0

INSIGHT_RULES = (
    InsightRule(
        lambda f: f["nights_logged"] > 0 and f["sleep_hours"] < f["target"] - 1,
        "⚠️ Below target sleep. Prioritize getting 1-2 more hours.",
    ),
    InsightRule(
        lambda f: f["nights_logged"] > 0 and f["quality_score"] < 6,
        "💤 Low sleep quality detected. Check caffeine intake and bedtime routine.",
    ),
    InsightRule(
        lambda f: f["nights_logged"] > 0 and f["compliance_rate"] >= 80,
        "✅ Excellent sleep consistency! Keep it up.",
    ),
)

SPEC = DomainSpec(
    name="sleep",
    label="Sleep entry",
    record_mode=RecordMode.REPLACE,
    precision=_AVERAGE_PRECISION,
    default_window_days=7,
    date_offset_days=-1,
    insight_rules=INSIGHT_RULES,
)

# (minimum hours, level, recommendations), checked top-down
_RECOVERY_TABLE: list[tuple[float, str, list[str]]] = [
    (8, "excellent", [
        "🟢 Excellent recovery - you can handle high intensity workouts",
        "Good day for heavy lifting or intense CrossFit sessions",
        "Consider pushing your training harder today",
    ]),
    (7, "good", [
        "🟡 Good recovery - normal training intensity recommended",
        "Stick to your regular workout routine",
        "Focus on form and technique today",
    ]),
    (6, "fair", [
        "🟠 Fair recovery - reduce intensity slightly",
        "Consider a shorter or lighter workout session",
        "Focus on mobility and recovery work today",
    ]),
    (0, "poor", [
        "🔴 Limited recovery - rest day recommended",
        "Prioritize light activity or rest",
        "Schedule your intense training for tomorrow",
    ]),
]


def default_document() -> SleepDocument:
    return SleepDocument()


def recovery_level(hours: float) -> tuple[str, list[str]]:
    """Map hours slept to a recovery level and its advice."""
    for minimum, level, advice in _RECOVERY_TABLE:
        if hours >= minimum:
            return level, list(advice)
    return _RECOVERY_TABLE[-1][1], list(_RECOVERY_TABLE[-1][2])


def _parse_hours(hours: float | str) -> float:
    try:
        value = float(hours)
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid sleep hours: {hours!r}") from None
    if not 0 <= value <= 24:
        raise InvalidInput("Sleep hours must be between 0 and 24")
    return value


def _parse_quality(quality: int | str) -> int:
    try:
        value = int(quality)
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid sleep quality: {quality!r}") from None
    if not 1 <= value <= 10:
        raise InvalidInput("Sleep quality must be between 1 and 10")
    return value


@dataclass
class SleepAverages:
    sleep_hours: float
    quality_score: float
    compliance_rate: float


@dataclass
class SleepStats:
    period: str
    target: float
    entries: dict[str, dict[str, Any]] = field(default_factory=dict)
    averages: SleepAverages | None = None
    nights_logged: int = 0
    days_on_target: int = 0
    insights: list[str] = field(default_factory=list)


@dataclass
class RecoveryRecommendation:
    date: str
    night_of: str
    sleep_hours: float | None
    recovery_level: str
    recommendations: list[str] = field(default_factory=list)


class Sleep:
    """The sleep domain: nightly log, rolling stats and recovery advice."""

    def __init__(self, engine: RoutineEngine[SleepDocument]) -> None:
        self._engine = engine

    @classmethod
    def open(cls, data_dir: str | Path, clock: Clock = datetime.now) -> Sleep:
        store = StateStore.open(Path(data_dir) / FILE_NAME, SleepDocument, default_document)
        return cls(RoutineEngine(store, SPEC, clock))

    @property
    def engine(self) -> RoutineEngine[SleepDocument]:
        return self._engine

    def log(self, hours: float | str, quality: int | str = 7, notes: str = "") -> str:
        """Log last night's sleep. Quality is on a 1-10 scale."""
        value = _parse_hours(hours)
        score = _parse_quality(quality)
        self._engine.record(
            SLEEP_EVENT,
            EntryStatus.COMPLETED,
            {"hours": value, "quality": score, "notes": notes, "source": "manual"},
        )
        return f"Logged {value:g}h sleep with quality {score}/10 ✓"

    def stats(self, days: int | str = 7) -> SleepStats:
        window = parse_days(days, SPEC.default_window_days)
        doc = self._engine.read()
        target = doc.settings.target_sleep_hours
        entries = collect_payload(
            self._engine.daily_log(doc), SLEEP_EVENT, self._engine.today(), window,
        )

        hours = [float(e.get("hours", 0)) for e in entries.values()]
        quality = [float(e.get("quality", 0)) for e in entries.values()]
        on_target = sum(1 for h in hours if h >= target)

        result = SleepStats(
            period=f"Last {window} days",
            target=target,
            entries=entries,
            nights_logged=len(entries),
            days_on_target=on_target,
        )
        if entries:
            result.averages = SleepAverages(
                sleep_hours=mean(hours, _AVERAGE_PRECISION),
                quality_score=mean(quality, _AVERAGE_PRECISION),
                compliance_rate=percentage(on_target, len(entries), _RATE_PRECISION),
            )

        facts: dict[str, Any] = {"nights_logged": len(entries), "target": target}
        if result.averages is not None:
            facts.update(
                sleep_hours=result.averages.sleep_hours,
                quality_score=result.averages.quality_score,
                compliance_rate=result.averages.compliance_rate,
            )
        result.insights = apply_insights(SPEC.insight_rules, facts)
        return result

    def recommendations(self) -> RecoveryRecommendation:
        """Training advice from last night's logged hours."""
        night = self._engine.log_date()
        entries = self._engine.daily_log(self._engine.read()).entries(SLEEP_EVENT, night)
        today = self._engine.today().isoformat()

        if not entries:
            return RecoveryRecommendation(
                date=today,
                night_of=night.isoformat(),
                sleep_hours=None,
                recovery_level="unknown",
                recommendations=["Log last night's sleep to get recovery recommendations"],
            )

        hours = float(entries[-1].payload.get("hours", 0))
        level, advice = recovery_level(hours)
        return RecoveryRecommendation(
            date=today,
            night_of=night.isoformat(),
            sleep_hours=hours,
            recovery_level=level,
            recommendations=advice,
        )

    def connect(self, service: str, credentials: str = "") -> str:
        """Record a device integration; the credential itself is not kept."""
        key, link = link_device(service, credentials, self._engine.now())
        with self._engine.transaction() as doc:
            doc.integrations[key] = link
        return f"{display_name(key)} integration connected ✓"

    def settings(self) -> dict[str, Any]:
        return self._engine.read().settings.model_dump()

    def set_target(self, hours: float | str) -> str:
        value = _parse_hours(hours)
        if value == 0:
            raise InvalidInput("Sleep target must be greater than 0")
        with self._engine.transaction() as doc:
            doc.settings.target_sleep_hours = value
        logger.info("Sleep target set to %sh", value)
        return f"Sleep target set to {value:g}h ✓"

    @property
    def commands(self) -> dict[str, Callable[..., Any]]:
        return {
            "log": self.log,
            "stats": self.stats,
            "recommendations": self.recommendations,
            "connect": self.connect,
            "settings": self.settings,
            "set_target": self.set_target,
            "status": self._engine.status_command,
            "history": self._engine.history_command,
        }
