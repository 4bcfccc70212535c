"""Shared test fixtures and configuration.

Sets up fake environment variables before any src import, and provides a
temp data directory, a controllable clock and the four domain objects.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("DATA_DIR", "data-for-tests")
os.environ.setdefault("HEARTBEAT_INTERVAL_SECONDS", "60")

from datetime import datetime

import pytest

# Tuesday
FIXED_NOW = datetime(2026, 3, 10, 6, 30)


class FakeClock:
    """Callable clock whose current time tests can move."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def data_dir(tmp_path):
    """Return a temporary data directory (not yet created)."""
    return tmp_path / "data"


@pytest.fixture
def reminders(data_dir, clock):
    from src.routines.reminders import Reminders
    return Reminders.open(data_dir, clock)


@pytest.fixture
def sleep(data_dir, clock):
    from src.routines.sleep import Sleep
    return Sleep.open(data_dir, clock)


@pytest.fixture
def supplements(data_dir, clock):
    from src.routines.supplements import Supplements
    return Supplements.open(data_dir, clock)


@pytest.fixture
def workouts(data_dir, clock):
    from src.routines.workouts import Workouts
    return Workouts.open(data_dir, clock)


@pytest.fixture
def service(data_dir, clock):
    from src.core.routine_service import build_routine_service
    return build_routine_service(data_dir, clock)
