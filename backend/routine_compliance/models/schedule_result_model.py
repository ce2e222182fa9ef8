# backend/routine_compliance/models/schedule_result_model.py
"""
Result models returned by generation, regeneration, sweeps and bulk completion.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..enums import OccurrenceStatus, RegenerationScope
from .occurrence_model import ScheduledOccurrence


class GenerationWindow(BaseModel):
    """Inclusive range of calendar dates to materialize."""

    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.end < self.start

    @property
    def days(self) -> int:
        if self.is_empty:
            return 0
        return (self.end - self.start).days + 1


class RegenerationResult(BaseModel):
    """Outcome of one RegenerationCoordinator entry point."""

    scope: RegenerationScope
    routine_id: Optional[int] = None
    product_ids: List[int] = Field(default_factory=list)
    deleted_count: int = 0
    inserted_count: int = 0
    preserved_count: int = Field(
        0, description="Finalized slots in the window left in place instead of regenerated"
    )
    attempts: int = 1
    window: Optional[GenerationWindow] = None
    skipped_reason: Optional[str] = Field(
        None, description="Why no occurrences were touched, when nothing was done"
    )

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


class SweepResult(BaseModel):
    """Outcome of an expiry sweep."""

    as_of: datetime
    subscriber_id: Optional[int] = None
    examined_count: int = 0
    missed_ids: List[int] = Field(default_factory=list)

    @property
    def missed_count(self) -> int:
        return len(self.missed_ids)


class CompletionOutcome(BaseModel):
    """Per-row result of a bulk completion."""

    occurrence_id: int
    status: Optional[OccurrenceStatus] = None
    occurrence: Optional[ScheduledOccurrence] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.occurrence is not None


class BulkCompletionResult(BaseModel):
    """Outcome of completing several occurrences at once."""

    completed_at: datetime
    outcomes: List[CompletionOutcome] = Field(default_factory=list)

    @property
    def completed(self) -> List[CompletionOutcome]:
        return [outcome for outcome in self.outcomes if outcome.succeeded]

    @property
    def rejected(self) -> List[CompletionOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]
