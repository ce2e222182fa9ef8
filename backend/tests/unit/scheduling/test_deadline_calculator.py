# backend/tests/unit/scheduling/test_deadline_calculator.py
"""
Tests for deadline computation, DST behaviour and the per-run deadline cache.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from routine_compliance.enums import TimeOfDay
from routine_compliance.exceptions import InvalidTimezoneError
from routine_compliance.models import DeadlineAnchors
from routine_compliance.services.scheduling import DeadlineCache, compute_deadlines
from routine_compliance.utils.time_utils import date_range

UTC = timezone.utc


@pytest.mark.unit
@pytest.mark.scheduling
class TestComputeDeadlines:
    def test_morning_deadline_in_new_york_summer(self):
        deadlines = compute_deadlines(date(2025, 6, 11), TimeOfDay.MORNING, "America/New_York")
        # 11:00 EDT
        assert deadlines.on_time_deadline == datetime(2025, 6, 11, 15, 0, tzinfo=UTC)
        # 23:59:59.999 EDT
        assert deadlines.grace_period_end == datetime(
            2025, 6, 12, 3, 59, 59, 999000, tzinfo=UTC
        )

    def test_evening_deadline(self):
        deadlines = compute_deadlines(date(2025, 6, 11), TimeOfDay.EVENING, "UTC")
        assert deadlines.on_time_deadline == datetime(2025, 6, 11, 22, 0, tzinfo=UTC)
        assert deadlines.grace_period_end == datetime(
            2025, 6, 11, 23, 59, 59, 999000, tzinfo=UTC
        )

    def test_local_wall_clock_is_preserved(self):
        zone = ZoneInfo("Asia/Kolkata")
        deadlines = compute_deadlines(date(2025, 1, 20), TimeOfDay.MORNING, "Asia/Kolkata")
        local = deadlines.on_time_deadline.astimezone(zone)
        assert local.date() == date(2025, 1, 20)
        assert local.time() == time(11, 0)

    def test_custom_anchors(self):
        anchors = DeadlineAnchors(morning=time(9, 30))
        deadlines = compute_deadlines(
            date(2025, 6, 11), TimeOfDay.MORNING, "UTC", anchors=anchors
        )
        assert deadlines.on_time_deadline == datetime(2025, 6, 11, 9, 30, tzinfo=UTC)

    def test_fixed_offset_zone_has_no_daylight_saving(self):
        deadlines = compute_deadlines(date(2025, 7, 16), TimeOfDay.MORNING, "EST")
        # EST is UTC-5 all year, unlike America/New_York
        assert deadlines.on_time_deadline == datetime(2025, 7, 16, 16, 0, tzinfo=UTC)

    def test_invalid_timezone(self):
        with pytest.raises(InvalidTimezoneError):
            compute_deadlines(date(2025, 6, 11), TimeOfDay.MORNING, "Atlantis/Capital")

    def test_deadline_never_after_grace_end(self):
        for zone_name in ("America/New_York", "Australia/Lord_Howe", "Pacific/Chatham", "UTC"):
            for current in date_range(date(2025, 1, 1), date(2025, 12, 31)):
                for time_of_day in TimeOfDay:
                    deadlines = compute_deadlines(current, time_of_day, zone_name)
                    assert deadlines.on_time_deadline <= deadlines.grace_period_end

    def test_deterministic(self):
        first = compute_deadlines(date(2025, 3, 9), TimeOfDay.EVENING, "America/New_York")
        second = compute_deadlines(date(2025, 3, 9), TimeOfDay.EVENING, "America/New_York")
        assert first == second


@pytest.mark.unit
@pytest.mark.scheduling
class TestDaylightSavingTransitions:
    """America/New_York: spring forward 2025-03-09, fall back 2025-11-02."""

    def test_spring_forward_changes_utc_offset(self):
        before = compute_deadlines(date(2025, 3, 8), TimeOfDay.MORNING, "America/New_York")
        on_day = compute_deadlines(date(2025, 3, 9), TimeOfDay.MORNING, "America/New_York")
        after = compute_deadlines(date(2025, 3, 10), TimeOfDay.MORNING, "America/New_York")

        assert before.on_time_deadline == datetime(2025, 3, 8, 16, 0, tzinfo=UTC)  # EST
        assert on_day.on_time_deadline == datetime(2025, 3, 9, 15, 0, tzinfo=UTC)  # EDT
        assert after.on_time_deadline == datetime(2025, 3, 10, 15, 0, tzinfo=UTC)

        # Consecutive 11:00 deadlines are 23 hours apart across the transition
        assert on_day.on_time_deadline - before.on_time_deadline == timedelta(hours=23)

    def test_fall_back_changes_utc_offset(self):
        before = compute_deadlines(date(2025, 11, 1), TimeOfDay.MORNING, "America/New_York")
        after = compute_deadlines(date(2025, 11, 2), TimeOfDay.MORNING, "America/New_York")

        assert before.on_time_deadline == datetime(2025, 11, 1, 15, 0, tzinfo=UTC)
        assert after.on_time_deadline == datetime(2025, 11, 2, 16, 0, tzinfo=UTC)
        assert after.on_time_deadline - before.on_time_deadline == timedelta(hours=25)

    def test_grace_end_on_transition_day(self):
        spring = compute_deadlines(date(2025, 3, 9), TimeOfDay.EVENING, "America/New_York")
        # Local day is 23 hours long; ends at 03:59:59.999 UTC the next day
        assert spring.grace_period_end == datetime(
            2025, 3, 10, 3, 59, 59, 999000, tzinfo=UTC
        )

    def test_offsets_match_zone_database(self):
        zone = ZoneInfo("Europe/Berlin")
        for current in date_range(date(2025, 3, 25), date(2025, 4, 5)):
            deadlines = compute_deadlines(current, TimeOfDay.EVENING, "Europe/Berlin")
            expected_offset = datetime(2025, current.month, current.day, 22, 0, tzinfo=zone).utcoffset()
            local = deadlines.on_time_deadline.astimezone(zone)
            assert local.utcoffset() == expected_offset
            assert local.time() == time(22, 0)


@pytest.mark.unit
@pytest.mark.scheduling
class TestDeadlineCache:
    def test_matches_direct_computation(self):
        cache = DeadlineCache("America/New_York")
        for current in date_range(date(2025, 3, 1), date(2025, 3, 20)):
            for time_of_day in TimeOfDay:
                assert cache.get(current, time_of_day) == compute_deadlines(
                    current, time_of_day, "America/New_York"
                )

    def test_repeated_lookup_returns_same_value(self):
        cache = DeadlineCache("America/New_York")
        first = cache.get(date(2025, 6, 11), TimeOfDay.MORNING)
        second = cache.get(date(2025, 6, 11), TimeOfDay.MORNING)
        assert first is second
        assert cache.hits == 1
        assert cache.misses == 1
        assert cache.hit_ratio == 0.5

    def test_key_includes_time_of_day(self):
        cache = DeadlineCache("UTC")
        morning = cache.get(date(2025, 6, 11), TimeOfDay.MORNING)
        evening = cache.get(date(2025, 6, 11), TimeOfDay.EVENING)
        assert morning != evening
        assert len(cache) == 2
        assert DeadlineCache.make_key(date(2025, 6, 11), TimeOfDay.EVENING) == "2025-06-11:evening"

    def test_invalid_timezone_fails_on_construction(self):
        with pytest.raises(InvalidTimezoneError):
            DeadlineCache("Nowhere/Land")

    def test_caches_are_independent(self):
        new_york = DeadlineCache("America/New_York")
        tokyo = DeadlineCache("Asia/Tokyo")
        target = date(2025, 6, 11)
        assert new_york.get(target, TimeOfDay.MORNING) != tokyo.get(target, TimeOfDay.MORNING)
