"""Tests for src.core.daily_log: the Daily Log."""

from datetime import date, datetime

import pytest

from src.core.daily_log import DailyLog
from src.data.models import EntryStatus, RecordMode

D1 = date(2026, 3, 8)
D2 = date(2026, 3, 9)
D3 = date(2026, 3, 10)


@pytest.fixture
def log():
    return DailyLog({}, mode=RecordMode.REPLACE)


class TestRecord:
    def test_replace_keeps_only_latest(self, log):
        log.record("morning", D3, EntryStatus.SKIPPED)
        log.record("morning", D3, EntryStatus.COMPLETED)
        assert len(log.entries("morning", D3)) == 1
        assert log.get("morning", D3) is EntryStatus.COMPLETED

    def test_append_accumulates(self):
        log = DailyLog({}, mode=RecordMode.APPEND)
        log.record("vitamin d", D3, EntryStatus.COMPLETED)
        log.record("vitamin d", D3, EntryStatus.COMPLETED)
        assert len(log.entries("vitamin d", D3)) == 2

    def test_mode_override(self, log):
        log.record("x", D3, EntryStatus.NONE)
        log.record("x", D3, EntryStatus.NONE, mode=RecordMode.APPEND)
        assert len(log.entries("x", D3)) == 2

    def test_payload_and_timestamp(self, log):
        entry = log.record(
            "sleep", D2, EntryStatus.COMPLETED, {"hours": 7.5},
            recorded_at=datetime(2026, 3, 10, 8, 0),
        )
        assert entry.payload == {"hours": 7.5}
        assert entry.recorded_at == "2026-03-10T08:00:00"

    def test_status_from_string(self, log):
        log.record("x", D3, "skipped")
        assert log.get("x", D3) is EntryStatus.SKIPPED


class TestQueries:
    def test_get_unrecorded_is_none(self, log):
        assert log.get("morning", D3) is None

    def test_latest_on_picks_most_recent(self):
        log = DailyLog({}, mode=RecordMode.APPEND)
        log.record("a", D3, EntryStatus.NONE, recorded_at=datetime(2026, 3, 10, 7))
        log.record("b", D3, EntryStatus.NONE, recorded_at=datetime(2026, 3, 10, 9))
        log.record("a", D3, EntryStatus.NONE, recorded_at=datetime(2026, 3, 10, 8))
        event_id, entry = log.latest_on(D3)
        assert event_id == "b"
        assert entry.recorded_at.endswith("09:00:00")

    def test_latest_on_empty_day(self, log):
        assert log.latest_on(D3) is None

    def test_entries_for_range_ascending_and_sparse(self, log):
        log.record("x", D3, EntryStatus.COMPLETED)
        log.record("x", D1, EntryStatus.COMPLETED)
        days = [day for day, _ in log.entries_for_range(D1, D3)]
        assert days == ["2026-03-08", "2026-03-10"]

    def test_entries_for_range_bounds_inclusive(self, log):
        log.record("x", D1, EntryStatus.COMPLETED)
        log.record("x", D3, EntryStatus.COMPLETED)
        assert [d for d, _ in log.entries_for_range(D2, D3)] == ["2026-03-10"]
        assert [d for d, _ in log.entries_for_range(D1, D1)] == ["2026-03-08"]
