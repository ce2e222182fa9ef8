"""
Pydantic models for the routine compliance engine.

Model Organization:
    - frequency_model: Frequency tagged union and its validating factories
    - routine_model: Routine and RoutineProduct
    - occurrence_model: ScheduledOccurrence records, deadlines and anchors
    - schedule_result_model: generation window and operation results
"""

from .frequency_model import (
    DailyFrequency,
    Frequency,
    WeekdaysFrequency,
    daily,
    from_mask,
    from_storage,
    parse_frequency,
    weekday_names,
    weekdays,
)
from .occurrence_model import (
    DeadlineAnchors,
    OccurrenceDeadlines,
    ScheduledOccurrence,
    ScheduledOccurrenceBase,
    ScheduledOccurrenceCreate,
)
from .routine_model import Routine, RoutineBase, RoutineProduct, RoutineProductBase
from .schedule_result_model import (
    BulkCompletionResult,
    CompletionOutcome,
    GenerationWindow,
    RegenerationResult,
    SweepResult,
)

__all__ = [
    # Frequency
    "DailyFrequency",
    "WeekdaysFrequency",
    "Frequency",
    "daily",
    "weekdays",
    "from_mask",
    "from_storage",
    "parse_frequency",
    "weekday_names",
    # Routines
    "RoutineBase",
    "Routine",
    "RoutineProductBase",
    "RoutineProduct",
    # Occurrences
    "DeadlineAnchors",
    "OccurrenceDeadlines",
    "ScheduledOccurrenceBase",
    "ScheduledOccurrenceCreate",
    "ScheduledOccurrence",
    # Results
    "GenerationWindow",
    "RegenerationResult",
    "SweepResult",
    "CompletionOutcome",
    "BulkCompletionResult",
]
