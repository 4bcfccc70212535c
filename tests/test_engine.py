"""Tests for src.core.engine: the generic routine engine."""

from datetime import date, datetime

import pytest

from src.core.engine import DomainSpec, RoutineEngine, parse_bool, report_facts
from src.core.errors import InvalidInput, NotFound
from src.core.heartbeat import HourBand
from src.data.models import EntryStatus, RoutineDocument
from src.data.store import StateStore


def _spec(**overrides):
    values = dict(name="test", label="Thing", fallback_bands=(HourBand(13, "Lunch?"),))
    values.update(overrides)
    return DomainSpec(**values)


@pytest.fixture
def engine(tmp_path, clock):
    store = StateStore.open(tmp_path / "test.json", RoutineDocument, RoutineDocument)
    return RoutineEngine(store, _spec(), clock)


class TestRegistryOperations:
    def test_add_persists(self, engine):
        engine.add_event("morning", "06:30", "Hello")
        assert engine.store.load().events["morning"].message == "Hello"

    def test_update_missing_uses_label(self, engine):
        with pytest.raises(NotFound, match='Thing "ghost" not found'):
            engine.update_event_time("ghost", "10:00")

    def test_failed_update_writes_nothing(self, engine):
        engine.add_event("morning", "06:30")
        with pytest.raises(InvalidInput):
            engine.update_event_time("morning", "bad")
        assert engine.get_event("morning").time_of_day == "06:30"

    def test_list_events_sorted(self, engine):
        engine.add_event("b", "09:00")
        engine.add_event("a", "08:00")
        assert [e.id for e in engine.list_events()] == ["a", "b"]


class TestRecord:
    def test_record_today(self, engine):
        engine.add_event("morning", "06:30")
        engine.record("morning", EntryStatus.COMPLETED)
        assert engine.status("morning") is EntryStatus.COMPLETED
        assert "2026-03-10" in engine.store.load().log

    def test_require_event(self, engine):
        with pytest.raises(NotFound):
            engine.record("ghost", EntryStatus.COMPLETED, require_event=True)
        assert engine.store.load().log == {}

    def test_date_offset(self, tmp_path, clock):
        store = StateStore.open(tmp_path / "s.json", RoutineDocument, RoutineDocument)
        engine = RoutineEngine(store, _spec(date_offset_days=-1), clock)
        engine.record("sleep", EntryStatus.COMPLETED)
        assert list(store.load().log) == ["2026-03-09"]
        assert engine.log_date() == date(2026, 3, 9)

    def test_recorded_at_uses_clock(self, engine):
        entry = engine.record("x", EntryStatus.NONE)
        assert entry.recorded_at == "2026-03-10T06:30:00"


class TestHeartbeat:
    def test_event_then_band(self, engine, clock):
        engine.add_event("lunch", "13:15", "Eat")
        assert engine.heartbeat("13:15").event_id == "lunch"
        assert engine.heartbeat("13:16").kind == "checkin"
        assert engine.heartbeat("14:00") is None

    def test_uses_clock_when_now_missing(self, engine, clock):
        engine.add_event("morning", "06:30")
        assert engine.heartbeat().event_id == "morning"
        clock.now = datetime(2026, 3, 10, 6, 31)
        assert engine.heartbeat() is None

    def test_disable_then_reenable(self, engine):
        engine.add_event("lunch", "13:15")
        engine.set_event_enabled("lunch", False)
        assert engine.heartbeat("13:15").kind == "checkin"
        engine.set_event_enabled("lunch", True)
        assert engine.heartbeat("13:15").event_id == "lunch"


class TestCompliance:
    def test_scenario_morning_and_evening(self, engine):
        engine.add_event("morning", "06:30")
        engine.add_event("evening", "21:00")

        trigger = engine.heartbeat(datetime(2026, 3, 10, 6, 30))
        assert trigger.event_id == "morning"

        engine.record("morning", EntryStatus.COMPLETED, on_date=date(2026, 3, 10))
        report = engine.compliance(1)
        assert report.events["morning"].compliance_rate == 100
        assert report.events["evening"].compliance_rate == 0
        assert report.compliance_rate == 50

    def test_disabled_restored_in_denominator(self, engine):
        engine.add_event("morning", "06:30")
        engine.add_event("evening", "21:00")
        engine.record("morning", EntryStatus.COMPLETED)
        engine.set_event_enabled("evening", False)
        assert engine.compliance(1).compliance_rate == 100
        engine.set_event_enabled("evening", True)
        assert engine.compliance(1).compliance_rate == 50

    def test_default_window(self, engine):
        assert len(engine.compliance().days) == 7

    def test_report_facts(self, engine):
        facts = report_facts(engine.compliance(3))
        assert facts["window_days"] == 3
        assert facts["total_opportunities"] == 0


class TestParseBool:
    @pytest.mark.parametrize("value", [True, "true", "Yes", "on", "1", "enable"])
    def test_true(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", [False, "false", "NO", "off", "0", "disabled"])
    def test_false(self, value):
        assert parse_bool(value) is False

    def test_invalid(self):
        with pytest.raises(InvalidInput):
            parse_bool("maybe")
