"""Daily Log: date-keyed completion / skip / payload records.

Pure business logic over a document's ``log`` mapping
(``YYYY-MM-DD`` -> event id -> entries, oldest first). No I/O.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from src.data.models import EntryStatus, LogEntry, RecordMode


class DailyLog:
    """View over a document's log with a fixed default record mode."""

    def __init__(
        self,
        log: dict[str, dict[str, list[LogEntry]]],
        mode: RecordMode = RecordMode.REPLACE,
    ) -> None:
        self._log = log
        self._mode = mode

    @property
    def mode(self) -> RecordMode:
        return self._mode

    def record(
        self,
        event_id: str,
        on_date: date,
        status: EntryStatus,
        payload: dict[str, Any] | None = None,
        *,
        recorded_at: datetime | None = None,
        mode: RecordMode | None = None,
    ) -> LogEntry:
        """Store a record for (event_id, on_date).

        REPLACE drops earlier records for the pair, APPEND keeps them.
        """
        entry = LogEntry(
            status=EntryStatus(status),
            recorded_at=(recorded_at or datetime.now()).isoformat(timespec="seconds"),
            payload=payload or {},
        )
        day = self._log.setdefault(on_date.isoformat(), {})
        if (mode or self._mode) is RecordMode.APPEND:
            day.setdefault(event_id, []).append(entry)
        else:
            day[event_id] = [entry]
        return entry

    def entries(self, event_id: str, on_date: date) -> list[LogEntry]:
        return list(self._log.get(on_date.isoformat(), {}).get(event_id, []))

    def get(self, event_id: str, on_date: date) -> EntryStatus | None:
        """Status of the latest record for the pair, or None if unrecorded."""
        entries = self._log.get(on_date.isoformat(), {}).get(event_id)
        if not entries:
            return None
        return entries[-1].status

    def day(self, on_date: date) -> dict[str, list[LogEntry]]:
        return self._log.get(on_date.isoformat(), {})

    def latest_on(self, on_date: date) -> tuple[str, LogEntry] | None:
        """Most recently recorded entry of the day across all event ids."""
        best: tuple[str, LogEntry] | None = None
        for event_id, entries in self._log.get(on_date.isoformat(), {}).items():
            for entry in entries:
                if best is None or entry.recorded_at >= best[1].recorded_at:
                    best = (event_id, entry)
        return best

    def entries_for_range(
        self, start: date, end: date,
    ) -> list[tuple[str, dict[str, list[LogEntry]]]]:
        """Logged days in ``[start, end]``, ascending; unlogged days are absent."""
        lo, hi = start.isoformat(), end.isoformat()
        return [
            (day, self._log[day])
            for day in sorted(self._log)
            if lo <= day <= hi and self._log[day]
        ]
