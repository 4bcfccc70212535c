"""Tests for src.data.models: persisted document schemas."""

from src.data.models import (
    EntryStatus,
    Event,
    LogEntry,
    RemindersDocument,
    SleepDocument,
    SupplementsDocument,
)


class TestEvent:
    def test_defaults(self):
        event = Event(id="morning", time_of_day="06:30")
        assert event.enabled is True
        assert event.message == ""
        assert event.weekdays is None
        assert event.payload == {}

    def test_scheduled_every_day_without_weekdays(self):
        event = Event(id="x", time_of_day="06:30")
        assert all(event.scheduled_on(d) for d in range(7))

    def test_scheduled_only_on_listed_weekdays(self):
        event = Event(id="Monday", time_of_day="18:00", weekdays=[0])
        assert event.scheduled_on(0)
        assert not event.scheduled_on(1)


class TestLogEntry:
    def test_status_from_string(self):
        entry = LogEntry.model_validate({"status": "completed"})
        assert entry.status is EntryStatus.COMPLETED

    def test_serializes_status_as_string(self):
        data = LogEntry(status=EntryStatus.SKIPPED).model_dump(mode="json")
        assert data["status"] == "skipped"


class TestDocuments:
    def test_reminders_enabled_by_default(self):
        assert RemindersDocument().enabled is True

    def test_sleep_defaults(self):
        doc = SleepDocument()
        assert doc.settings.target_sleep_hours == 8
        assert doc.settings.bedtime == "23:00"
        assert doc.settings.wake_time == "07:00"
        assert doc.integrations == {"whoop": None, "oura": None, "apple_health": None}

    def test_supplements_default_target(self):
        assert SupplementsDocument().settings.daily_target == 10

    def test_extra_fields_are_kept(self):
        doc = RemindersDocument.model_validate({"enabled": False, "timezone": "UTC"})
        assert doc.model_dump()["timezone"] == "UTC"
