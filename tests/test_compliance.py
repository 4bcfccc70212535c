"""Tests for src.core.compliance: rolling-window statistics."""

from datetime import date

import pytest

from src.core.compliance import (
    InsightRule,
    apply_insights,
    collect_payload,
    fixed_denominator_compliance,
    mean,
    parse_days,
    percentage,
    registry_compliance,
    round_to,
    window_dates,
)
from src.core.daily_log import DailyLog
from src.core.errors import InvalidInput
from src.data.models import EntryStatus, Event, RecordMode

TODAY = date(2026, 3, 10)


def _events():
    return [
        Event(id="morning", time_of_day="06:30"),
        Event(id="evening", time_of_day="21:00"),
    ]


class TestHelpers:
    def test_window_dates_newest_first(self):
        dates = window_dates(TODAY, 7)
        assert dates[0] == TODAY
        assert dates[-1] == date(2026, 3, 4)
        assert len(set(dates)) == 7

    def test_parse_days(self):
        assert parse_days(None, 7) == 7
        assert parse_days("", 7) == 7
        assert parse_days("30", 7) == 30

    @pytest.mark.parametrize("bad", [0, -1, 367, "week"])
    def test_parse_days_rejects(self, bad):
        with pytest.raises(InvalidInput):
            parse_days(bad, 7)

    def test_round_half_up(self):
        assert round_to(2.5, 0) == 3
        assert isinstance(round_to(2.5, 0), int)
        assert round_to(66.65, 1) == 66.7

    def test_percentage_zero_denominator(self):
        assert percentage(3, 0, 0) == 0

    def test_percentage(self):
        assert percentage(1, 3, 1) == 33.3
        assert percentage(2, 3, 0) == 67

    def test_mean_empty(self):
        assert mean([], 1) is None

    def test_insights_fire_independently(self):
        rules = [
            InsightRule(lambda f: f["x"] > 1, "big"),
            InsightRule(lambda f: f["x"] > 2, "bigger"),
            InsightRule(lambda f: f["x"] > 10, "huge"),
        ]
        assert apply_insights(rules, {"x": 5}) == ["big", "bigger"]


class TestRegistryCompliance:
    def test_one_day_mixed(self):
        log = DailyLog({})
        log.record("morning", TODAY, EntryStatus.COMPLETED)
        report = registry_compliance(_events(), log, TODAY, 1)
        assert report.events["morning"].compliance_rate == 100
        assert report.events["evening"].compliance_rate == 0
        assert report.compliance_rate == 50
        assert report.period == "Today"

    def test_disabled_excluded_from_denominator(self):
        events = _events()
        events[1].enabled = False
        log = DailyLog({})
        log.record("morning", TODAY, EntryStatus.COMPLETED)
        report = registry_compliance(events, log, TODAY, 1)
        assert "evening" not in report.events
        assert report.total_opportunities == 1
        assert report.compliance_rate == 100

    def test_skipped_counted_separately(self):
        log = DailyLog({})
        log.record("morning", TODAY, EntryStatus.SKIPPED)
        report = registry_compliance(_events(), log, TODAY, 1)
        assert report.skipped == 1
        assert report.completed == 0

    def test_window_bounds(self):
        log = DailyLog({})
        # outside a 7-day window ending today
        log.record("morning", date(2026, 3, 3), EntryStatus.COMPLETED)
        log.record("morning", date(2026, 3, 4), EntryStatus.COMPLETED)
        report = registry_compliance(_events(), log, TODAY, 7)
        assert report.start == "2026-03-04"
        assert report.end == "2026-03-10"
        assert report.completed == 1
        assert report.total_opportunities == 14

    def test_deterministic(self):
        log = DailyLog({})
        log.record("morning", TODAY, EntryStatus.COMPLETED)
        first = registry_compliance(_events(), log, TODAY, 7)
        second = registry_compliance(_events(), log, TODAY, 7)
        assert first == second

    def test_days_on_target_and_mean(self):
        log = DailyLog({})
        log.record("morning", TODAY, EntryStatus.COMPLETED)
        log.record("evening", TODAY, EntryStatus.COMPLETED)
        log.record("morning", date(2026, 3, 9), EntryStatus.COMPLETED)
        report = registry_compliance(_events(), log, TODAY, 2)
        assert report.days_on_target == 1
        assert report.mean_daily_rate == 75

    def test_weekday_scoped_events(self):
        events = [Event(id="Monday", time_of_day="18:00", weekdays=[0])]
        report = registry_compliance(events, DailyLog({}), TODAY, 7)
        assert report.total_opportunities == 1

    def test_custom_day_completed(self):
        log = DailyLog({}, mode=RecordMode.APPEND)
        log.record("morning", TODAY, EntryStatus.COMPLETED)
        log.record("morning", TODAY, EntryStatus.NONE)
        default = registry_compliance(_events()[:1], log, TODAY, 1)
        lenient = registry_compliance(
            _events()[:1], log, TODAY, 1,
            day_completed=lambda es: any(e.status is EntryStatus.COMPLETED for e in es),
        )
        assert default.completed == 0
        assert lenient.completed == 1

    def test_no_events(self):
        report = registry_compliance([], DailyLog({}), TODAY, 7)
        assert report.compliance_rate == 0
        assert report.mean_daily_rate is None


class TestFixedDenominator:
    def test_gap_days_are_zero(self):
        log = DailyLog({}, mode=RecordMode.APPEND)
        for _ in range(5):
            log.record("x", TODAY, EntryStatus.COMPLETED)
        report = fixed_denominator_compliance(log, TODAY, 2, 10)
        rates = {d.date: d.rate for d in report.days}
        assert rates == {"2026-03-10": 50.0, "2026-03-09": 0.0}
        assert report.mean_daily_rate == 25.0

    def test_on_target(self):
        log = DailyLog({}, mode=RecordMode.APPEND)
        for _ in range(2):
            log.record("x", TODAY, EntryStatus.COMPLETED)
        report = fixed_denominator_compliance(log, TODAY, 1, 2)
        assert report.days_on_target == 1


class TestCollectPayload:
    def test_latest_payload_per_day(self):
        log = DailyLog({})
        log.record("sleep", date(2026, 3, 9), EntryStatus.COMPLETED, {"hours": 7})
        log.record("sleep", date(2026, 3, 1), EntryStatus.COMPLETED, {"hours": 6})
        assert collect_payload(log, "sleep", TODAY, 7) == {"2026-03-09": {"hours": 7}}
