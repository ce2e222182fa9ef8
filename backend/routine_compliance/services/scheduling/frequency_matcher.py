# backend/routine_compliance/services/scheduling/frequency_matcher.py
"""
Frequency Matcher - decides whether a date is an occurrence date.
"""

from datetime import date
from typing import Iterator, Union

from ...models.frequency_model import DailyFrequency, WeekdaysFrequency
from ...utils.time_utils import date_range, weekday_index


class FrequencyMatcher:
    """Stateless membership tests for Daily and Weekdays frequencies."""

    @staticmethod
    def matches(
        frequency: Union[DailyFrequency, WeekdaysFrequency], scheduled_date: date
    ) -> bool:
        if isinstance(frequency, DailyFrequency):
            return True
        # An empty mask never matches
        return bool((frequency.mask >> weekday_index(scheduled_date)) & 1)

    @classmethod
    def occurrence_dates(
        cls,
        frequency: Union[DailyFrequency, WeekdaysFrequency],
        start: date,
        end: date,
    ) -> Iterator[date]:
        """Dates in [start, end] on which the frequency occurs."""
        for current in date_range(start, end):
            if cls.matches(frequency, current):
                yield current
