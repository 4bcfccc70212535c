"""
Routine Assistant: UI-Agnostic Routine Service.

The integration point for any host (Telegram bot, CLI, agent runtime):
every domain operation is reachable by name with positional primitive
arguments, and every call returns a structured response object. Typed
engine failures become ``ErrorResponse`` objects with a short message;
they are never logged-and-swallowed below this layer.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from src.core.engine import Clock
from src.core.errors import RoutineError
from src.core.heartbeat import Trigger, coerce_now, evaluate
from src.routines.reminders import Reminders
from src.routines.sleep import Sleep
from src.routines.supplements import Supplements
from src.routines.workouts import Workouts

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


class ResponseKind(Enum):
    SUCCESS = "success"
    ERROR = "error"
    QUERY_RESULT = "query_result"
    NO_ACTION = "no_action"


@dataclass
class ServiceResponse:
    kind: ResponseKind
    message: str


@dataclass
class SuccessResponse(ServiceResponse):
    pass


@dataclass
class ErrorResponse(ServiceResponse):
    error_type: str = ""


@dataclass
class QueryResultResponse(ServiceResponse):
    data: Any = None


@dataclass
class NoActionResponse(ServiceResponse):
    pass


# ---------------------------------------------------------------------------
# RoutineService
# ---------------------------------------------------------------------------


class RoutineService:
    """Owns the four domain instances and dispatches commands to them."""

    def __init__(
        self,
        reminders: Reminders,
        sleep: Sleep,
        supplements: Supplements,
        workouts: Workouts,
        clock: Clock = datetime.now,
    ) -> None:
        self.reminders = reminders
        self.sleep = sleep
        self.supplements = supplements
        self.workouts = workouts
        self._clock = clock

    def commands(self) -> dict[str, dict[str, Callable[..., Any]]]:
        """``domain -> operation name -> callable``."""
        return {
            "reminders": self.reminders.commands,
            "sleep": self.sleep.commands,
            "supplements": self.supplements.commands,
            "workouts": self.workouts.commands,
        }

    def execute(self, domain: str, operation: str, *args: Any) -> ServiceResponse:
        """Run ``domain.operation(*args)`` and wrap the outcome."""
        domain_commands = self.commands().get(domain)
        if domain_commands is None:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message=f"Unknown area '{domain}'. Try: {', '.join(self.commands())}",
                error_type="InvalidInput",
            )

        func = domain_commands.get(operation)
        if func is None:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message=(
                    f"Unknown {domain} command '{operation}'. "
                    f"Try: {', '.join(domain_commands)}"
                ),
                error_type="InvalidInput",
            )

        try:
            inspect.signature(func).bind(*args)
        except TypeError:
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message=f"Wrong arguments for {domain} {operation}",
                error_type="InvalidInput",
            )

        try:
            result = func(*args)
        except RoutineError as exc:
            logger.info("%s.%s failed: %s", domain, operation, exc)
            return ErrorResponse(
                kind=ResponseKind.ERROR,
                message=f"{domain} {operation}: {exc}",
                error_type=type(exc).__name__,
            )

        if result is None:
            return NoActionResponse(kind=ResponseKind.NO_ACTION, message="Nothing to report")
        if isinstance(result, str):
            return SuccessResponse(kind=ResponseKind.SUCCESS, message=result)
        return QueryResultResponse(
            kind=ResponseKind.QUERY_RESULT,
            message=f"{domain} {operation}",
            data=result,
        )

    def heartbeat(self, now: datetime | str | None = None) -> Trigger | None:
        """One tick for the whole assistant; at most one trigger.

        Registry matches (reminders, then workouts) win over the reminder
        hour-band check-ins.
        """
        now = coerce_now(now, self._clock)
        sources = [
            ("reminders", self.reminders.heartbeat_events()),
            ("workouts", self.workouts.heartbeat_events()),
        ]
        bands = [("reminders", self.reminders.heartbeat_bands())]
        trigger = evaluate(sources, bands, now)
        if trigger is not None:
            logger.info(
                "Heartbeat %s: %s trigger from %s (%s)",
                now.strftime("%H:%M"), trigger.kind, trigger.domain,
                trigger.event_id or "band",
            )
        return trigger


def build_routine_service(
    data_dir: str | Path | None = None,
    clock: Clock = datetime.now,
) -> RoutineService:
    """Open one store per domain under ``data_dir`` (default: settings)."""
    if data_dir is None:
        from src.config import settings
        data_dir = settings.DATA_DIR

    return RoutineService(
        reminders=Reminders.open(data_dir, clock),
        sleep=Sleep.open(data_dir, clock),
        supplements=Supplements.open(data_dir, clock),
        workouts=Workouts.open(data_dir, clock),
        clock=clock,
    )
