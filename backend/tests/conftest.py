# backend/tests/conftest.py
"""
Pytest configuration and shared fixtures for routine compliance tests.

The default clock is Wednesday 2025-06-11 12:00 UTC, which is 08:00 on the
same date in America/New_York (EDT, UTC-4).
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from fakes import InMemoryScheduleStore
from routine_compliance.config import Settings
from routine_compliance.enums import TimeOfDay, Weekday
from routine_compliance.models import weekdays
from routine_compliance.services.compliance_service import ComplianceService
from routine_compliance.services.regeneration_service import RegenerationCoordinator
from routine_compliance.services.scheduling import WindowGenerator

NEW_YORK = "America/New_York"
SUBSCRIBER_ID = 1


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return self.now


@pytest.fixture
def ny_timezone() -> str:
    return NEW_YORK


@pytest.fixture
def wednesday() -> date:
    """A Wednesday in June (EDT)."""
    return date(2025, 6, 11)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 6, 11, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        schedule_window_days=60,
        regeneration_lock_timeout_ms=250,
        regeneration_max_retries=1,
    )


@pytest.fixture
def store() -> InMemoryScheduleStore:
    schedule_store = InMemoryScheduleStore()
    schedule_store.add_subscriber(SUBSCRIBER_ID, NEW_YORK)
    return schedule_store


@pytest.fixture
def generator(test_settings) -> WindowGenerator:
    return WindowGenerator(test_settings.deadline_anchors)


@pytest.fixture
def coordinator(store, generator, test_settings, clock) -> RegenerationCoordinator:
    return RegenerationCoordinator(
        store, generator=generator, config=test_settings, clock=clock
    )


@pytest.fixture
def compliance_service(store, clock) -> ComplianceService:
    return ComplianceService(store, clock=clock)


@pytest.fixture
def published_routine(store):
    return store.add_routine(subscriber_id=SUBSCRIBER_ID, start_date=date(2025, 6, 1))


@pytest.fixture
def cleanser(store, published_routine):
    """Cleanser on Mon/Wed/Fri mornings."""
    return store.add_product(
        published_routine,
        name="Cleanser",
        time_of_day=TimeOfDay.MORNING,
        frequency=weekdays(Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY),
    )
