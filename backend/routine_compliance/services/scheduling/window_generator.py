# backend/routine_compliance/services/scheduling/window_generator.py
"""
Window Generator - materializes (product, date) occurrences for a window.

Products are grouped by time of day so each (date, time of day) pair is looked
up in the DeadlineCache once and shared by every product in the group. A cache
handed in by the caller is shared across calls of the same run (window
extension generates product by product). Output is date-major, then product
insertion order.
"""

from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from ...constants import DEFAULT_SCHEDULE_WINDOW_DAYS
from ...enums import LogEmoji, LoggerName, TimeOfDay
from ...exceptions import InvalidWindowError
from ...models.occurrence_model import DeadlineAnchors, ScheduledOccurrenceCreate
from ...models.routine_model import Routine, RoutineProduct
from ...models.schedule_result_model import GenerationWindow
from ...utils.time_utils import date_range, local_today
from ..logger import get_service_logger
from .deadline_calculator import DeadlineCache
from .frequency_matcher import FrequencyMatcher

logger = get_service_logger(LoggerName.WINDOW_GENERATOR, LogEmoji.CALENDAR)


def calculate_generation_window(
    routine: Routine,
    timezone_name: str,
    now: datetime,
    window_days: int = DEFAULT_SCHEDULE_WINDOW_DAYS,
) -> Optional[GenerationWindow]:
    """
    Rolling window for a routine as of `now`.

    Starts at the later of the routine's start date and the subscriber's local
    today, spans window_days dates, and is capped at the routine's end date.

    Returns:
        The window, or None when the routine has already ended

    Raises:
        InvalidWindowError: If the routine ends before it starts
        InvalidTimezoneError: If the timezone cannot be resolved
    """
    if routine.end_date is not None and routine.end_date < routine.start_date:
        raise InvalidWindowError(
            f"Routine {routine.id} ends ({routine.end_date}) before it starts "
            f"({routine.start_date})"
        )
    if window_days < 1:
        raise InvalidWindowError(f"Window length must be positive, got {window_days}")

    today = local_today(timezone_name, now)
    start = max(routine.start_date, today)
    end = start + timedelta(days=window_days - 1)
    if routine.end_date is not None:
        end = min(end, routine.end_date)

    if end < start:
        return None
    return GenerationWindow(start=start, end=end)


class WindowGenerator:
    """Produces unsaved occurrences for a set of products over a date window."""

    def __init__(self, anchors: Optional[DeadlineAnchors] = None):
        self.anchors = anchors or DeadlineAnchors()

    def generate(
        self,
        products: Sequence[RoutineProduct],
        window_start: date,
        window_end: date,
        timezone_name: str,
        cache: Optional[DeadlineCache] = None,
    ) -> List[ScheduledOccurrenceCreate]:
        """
        Generate pending occurrences for every product on every matching date.

        A cache may be passed to share deadlines across several calls of the
        same run; it must have been built for the same timezone.

        Raises:
            InvalidTimezoneError: If the timezone cannot be resolved
        """
        if cache is None:
            cache = DeadlineCache(timezone_name, self.anchors)

        if window_end < window_start or not products:
            return []

        groups: Dict[TimeOfDay, List[Tuple[int, RoutineProduct]]] = OrderedDict()
        for position, product in enumerate(products):
            groups.setdefault(product.time_of_day, []).append((position, product))

        occurrences: List[ScheduledOccurrenceCreate] = []
        for current in date_range(window_start, window_end):
            day: List[Tuple[int, ScheduledOccurrenceCreate]] = []
            for time_of_day, members in groups.items():
                deadlines = cache.get(current, time_of_day)
                for position, product in members:
                    if not FrequencyMatcher.matches(product.frequency, current):
                        continue
                    day.append(
                        (
                            position,
                            ScheduledOccurrenceCreate(
                                routine_product_id=product.id,
                                subscriber_id=product.subscriber_id,
                                scheduled_date=current,
                                scheduled_time_of_day=time_of_day,
                                on_time_deadline=deadlines.on_time_deadline,
                                grace_period_end=deadlines.grace_period_end,
                            ),
                        )
                    )
            day.sort(key=lambda item: item[0])
            occurrences.extend(occurrence for _, occurrence in day)

        logger.debug(
            f"Generated {len(occurrences)} occurrences for {len(products)} products",
            extra_context={
                "window": f"{window_start}..{window_end}",
                "timezone": timezone_name,
                "cache_hits": cache.hits,
                "cache_misses": cache.misses,
            },
        )
        return occurrences

    def generate_for_window(
        self,
        products: Sequence[RoutineProduct],
        window: GenerationWindow,
        timezone_name: str,
    ) -> List[ScheduledOccurrenceCreate]:
        return self.generate(products, window.start, window.end, timezone_name)
