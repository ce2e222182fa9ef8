# backend/routine_compliance/services/scheduling/deadline_calculator.py
"""
Deadline Calculator - timezone-correct on-time and grace deadlines.

Given a calendar date, a time of day and the subscriber's timezone, anchors the
on-time cutoff at the configured local wall-clock time and the grace period at
local end-of-day, then converts both to UTC.

DST handling: each local time is attached to the zone and converted for that
specific date, so 11:00 in New York is 15:00 UTC in July and 16:00 UTC in
January. No offset is ever cached.

DeadlineCache memoizes results for a single generation run. Build a new cache
per run (per subscriber); never share one across subscribers or requests.
"""

from datetime import date, datetime
from typing import Dict, Optional
from zoneinfo import ZoneInfo

from ...constants import GRACE_PERIOD_END_OF_DAY
from ...enums import TimeOfDay
from ...models.occurrence_model import DeadlineAnchors, OccurrenceDeadlines
from ...utils.time_utils import UTC_TIMEZONE, resolve_timezone

_DEFAULT_ANCHORS = DeadlineAnchors()


def _deadlines_in_zone(
    scheduled_date: date,
    time_of_day: TimeOfDay,
    zone: ZoneInfo,
    anchors: DeadlineAnchors,
) -> OccurrenceDeadlines:
    on_time_local = datetime.combine(
        scheduled_date, anchors.anchor_for(time_of_day), tzinfo=zone
    )
    grace_local = datetime.combine(scheduled_date, GRACE_PERIOD_END_OF_DAY, tzinfo=zone)
    return OccurrenceDeadlines(
        on_time_deadline=on_time_local.astimezone(UTC_TIMEZONE),
        grace_period_end=grace_local.astimezone(UTC_TIMEZONE),
    )


def compute_deadlines(
    scheduled_date: date,
    time_of_day: TimeOfDay,
    timezone_name: str,
    anchors: Optional[DeadlineAnchors] = None,
) -> OccurrenceDeadlines:
    """
    Compute the on-time deadline and grace-period end for one occurrence.

    Args:
        scheduled_date: Calendar date in the subscriber's timezone
        time_of_day: Which anchor to use
        timezone_name: Subscriber's IANA timezone
        anchors: Local on-time cutoffs (defaults to 11:00 / 22:00)

    Returns:
        OccurrenceDeadlines with both instants in UTC

    Raises:
        InvalidTimezoneError: If the timezone cannot be resolved
    """
    zone = resolve_timezone(timezone_name)
    return _deadlines_in_zone(
        scheduled_date, TimeOfDay(time_of_day), zone, anchors or _DEFAULT_ANCHORS
    )


class DeadlineCache:
    """
    Per-run memo of compute_deadlines keyed by "<date>:<time_of_day>".

    The timezone is fixed at construction and resolved eagerly, so an invalid
    zone fails before any generation work starts.
    """

    def __init__(self, timezone_name: str, anchors: Optional[DeadlineAnchors] = None):
        self.timezone_name = timezone_name
        self.anchors = anchors or _DEFAULT_ANCHORS
        self._zone = resolve_timezone(timezone_name)
        self._entries: Dict[str, OccurrenceDeadlines] = {}
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(scheduled_date: date, time_of_day: TimeOfDay) -> str:
        return f"{scheduled_date.isoformat()}:{TimeOfDay(time_of_day).value}"

    def get(self, scheduled_date: date, time_of_day: TimeOfDay) -> OccurrenceDeadlines:
        key = self.make_key(scheduled_date, time_of_day)
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        deadlines = _deadlines_in_zone(
            scheduled_date, TimeOfDay(time_of_day), self._zone, self.anchors
        )
        self._entries[key] = deadlines
        return deadlines

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def hit_ratio(self) -> float:
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups
