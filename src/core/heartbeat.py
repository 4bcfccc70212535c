"""Heartbeat Trigger Engine: decide whether one thing should fire now.

Stateless. Called once per heartbeat tick with the current local time.

Precision: an event matches only when its ``HH:MM`` equals the current
minute exactly. A caller ticking less than once a minute can skip an event;
that bound is accepted, the match window is not widened.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Sequence

from src.core.errors import InvalidInput
from src.data.models import Event

KIND_EVENT = "event"
KIND_CHECKIN = "checkin"


@dataclass
class Trigger:
    """The at-most-one notification produced by a tick."""

    kind: str                  # "event" | "checkin"
    message: str
    time: str                  # HH:MM of the tick
    event_id: str | None = None
    domain: str = ""


@dataclass(frozen=True)
class HourBand:
    """Coarse fallback rule: fire ``message`` during hour ``hour``."""

    hour: int
    message: str


def match_event(
    events: Iterable[Event], now: datetime, domain: str = "",
) -> Trigger | None:
    """First enabled event (registration order) due in ``now``'s minute."""
    current = now.strftime("%H:%M")
    weekday = now.weekday()
    for event in events:
        if not event.enabled or not event.scheduled_on(weekday):
            continue
        if event.time_of_day == current:
            return Trigger(
                kind=KIND_EVENT,
                message=event.message,
                time=current,
                event_id=event.id,
                domain=domain,
            )
    return None


def match_band(
    bands: Sequence[HourBand], now: datetime, domain: str = "",
) -> Trigger | None:
    for band in bands:
        if band.hour == now.hour:
            return Trigger(
                kind=KIND_CHECKIN,
                message=band.message,
                time=now.strftime("%H:%M"),
                domain=domain,
            )
    return None


def evaluate(
    sources: Sequence[tuple[str, Iterable[Event]]],
    bands: Sequence[tuple[str, Sequence[HourBand]]],
    now: datetime,
) -> Trigger | None:
    """Evaluate one tick across several registries.

    Every registry is scanned before any fallback band is considered, so a
    band never fires in the same tick as a registry match.
    """
    for domain, events in sources:
        trigger = match_event(events, now, domain)
        if trigger is not None:
            return trigger
    for domain, domain_bands in bands:
        trigger = match_band(domain_bands, now, domain)
        if trigger is not None:
            return trigger
    return None


def coerce_now(value: datetime | str | None, clock: Callable[[], datetime]) -> datetime:
    """Accept a datetime, an ISO timestamp, a bare ``HH:MM`` (today) or None."""
    if value is None or value == "":
        return clock()
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    try:
        if "T" in text or "-" in text:
            return datetime.fromisoformat(text)
        hhmm = datetime.strptime(text, "%H:%M").time()
    except ValueError:
        raise InvalidInput(f"Invalid heartbeat time {value!r}") from None
    return datetime.combine(clock().date(), hhmm)
