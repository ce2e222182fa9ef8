# backend/routine_compliance/models/occurrence_model.py
"""
Scheduled Occurrence Models - the compliance records.

One occurrence is one product on one calendar date. Its deadlines are stored
as absolute UTC instants; its scheduled_date is a plain calendar date in the
subscriber's timezone.
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import DEFAULT_DEADLINE_ANCHORS, GRACE_PERIOD_END_OF_DAY
from ..enums import OccurrenceStatus, TimeOfDay
from ..utils.time_utils import ensure_utc


class DeadlineAnchors(BaseModel):
    """Local on-time cutoff per time of day."""

    model_config = ConfigDict(frozen=True)

    morning: time = Field(default=DEFAULT_DEADLINE_ANCHORS[TimeOfDay.MORNING])
    evening: time = Field(default=DEFAULT_DEADLINE_ANCHORS[TimeOfDay.EVENING])

    @field_validator("morning", "evening")
    @classmethod
    def validate_before_grace(cls, v: time) -> time:
        if v.tzinfo is not None:
            raise ValueError("Deadline anchors are local wall-clock times")
        if v > GRACE_PERIOD_END_OF_DAY:
            raise ValueError(
                f"Anchor {v.isoformat()} falls after the grace period end"
            )
        return v

    def anchor_for(self, time_of_day: TimeOfDay) -> time:
        return getattr(self, TimeOfDay(time_of_day).value)


class OccurrenceDeadlines(BaseModel):
    """On-time deadline and grace-period end for one (date, time of day)."""

    model_config = ConfigDict(frozen=True)

    on_time_deadline: datetime
    grace_period_end: datetime

    @model_validator(mode="after")
    def validate_ordering(self) -> "OccurrenceDeadlines":
        if self.grace_period_end < self.on_time_deadline:
            raise ValueError("grace_period_end must not precede on_time_deadline")
        return self


class ScheduledOccurrenceBase(BaseModel):
    """Base model for scheduled occurrence data."""

    routine_product_id: int
    subscriber_id: int
    scheduled_date: date
    scheduled_time_of_day: TimeOfDay
    on_time_deadline: datetime
    grace_period_end: datetime

    @field_validator("on_time_deadline", "grace_period_end")
    @classmethod
    def validate_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_deadline_ordering(self):
        if self.grace_period_end < self.on_time_deadline:
            raise ValueError("grace_period_end must not precede on_time_deadline")
        return self

    @property
    def deadlines(self) -> OccurrenceDeadlines:
        return OccurrenceDeadlines(
            on_time_deadline=self.on_time_deadline,
            grace_period_end=self.grace_period_end,
        )


class ScheduledOccurrenceCreate(ScheduledOccurrenceBase):
    """Unsaved occurrence produced by the window generator."""

    status: OccurrenceStatus = OccurrenceStatus.PENDING
    completed_at: Optional[datetime] = None


class ScheduledOccurrence(ScheduledOccurrenceBase):
    """Complete scheduled occurrence with database fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    status: OccurrenceStatus = OccurrenceStatus.PENDING
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_completion_consistency(self) -> "ScheduledOccurrence":
        if self.status.is_completed and self.completed_at is None:
            raise ValueError(f"Status '{self.status.value}' requires completed_at")
        if not self.status.is_completed and self.completed_at is not None:
            raise ValueError(
                f"Status '{self.status.value}' must not carry completed_at"
            )
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == OccurrenceStatus.PENDING
