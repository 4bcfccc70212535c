"""
Routine Assistant: Heartbeat Push Job.

The host calls ``send_heartbeat`` on a repeating timer (at most every
60 seconds). Each call evaluates one tick and, if something is due,
pushes it to every allowed user through the NotificationPort.

The engine itself has no memory between ticks. ``TriggerGate`` is the
host-side guard that keeps a sub-minute cadence from delivering the same
reminder twice, and keeps an hour-band check-in to one push per hour.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Iterable

from src.core.heartbeat import KIND_EVENT, Trigger

if TYPE_CHECKING:
    from src.core.routine_service import RoutineService
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


class TriggerGate:
    """Remembers what was delivered today."""

    def __init__(self) -> None:
        self._day: date | None = None
        self._seen: set[tuple[str, ...]] = set()

    @staticmethod
    def _key(trigger: Trigger, now: datetime) -> tuple[str, ...]:
        if trigger.kind == KIND_EVENT:
            return (trigger.domain, trigger.event_id or "", trigger.time)
        return (trigger.domain, trigger.kind, f"{now.hour:02d}")

    def admit(self, trigger: Trigger, now: datetime) -> bool:
        """True the first time this trigger is seen for its minute/hour."""
        if self._day != now.date():
            self._day = now.date()
            self._seen.clear()
        key = self._key(trigger, now)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True


def format_trigger(trigger: Trigger) -> str:
    """Human-readable push text for a trigger."""
    if trigger.kind == KIND_EVENT:
        return f"⏰ {trigger.time}: {trigger.message}" if trigger.message else f"⏰ {trigger.time}"
    return trigger.message


async def send_heartbeat(
    service: RoutineService,
    notifier: NotificationPort,
    user_ids: Iterable[int],
    now: datetime | None = None,
    gate: TriggerGate | None = None,
) -> Trigger | None:
    """Evaluate one tick and deliver its trigger, if any.

    Returns the delivered trigger, or None when nothing was due (or the
    gate suppressed a repeat). Evaluation errors propagate; a delivery
    failure for one user is logged and does not stop the others.
    """
    now = now or datetime.now()
    trigger = service.heartbeat(now)
    if trigger is None:
        return None
    if gate is not None and not gate.admit(trigger, now):
        logger.debug("Heartbeat trigger already delivered: %s", trigger)
        return None

    text = format_trigger(trigger)
    for user_id in user_ids:
        try:
            await notifier.send_message(user_id, text)
            logger.info("Heartbeat trigger sent to user %d", user_id)
        except Exception as exc:
            logger.error("Failed to send heartbeat trigger to %d: %s", user_id, exc)
    return trigger
