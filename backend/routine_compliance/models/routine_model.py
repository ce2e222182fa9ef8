# backend/routine_compliance/models/routine_model.py
"""
Routine Models - routines and the product steps they own.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..enums import RoutineStatus, TimeOfDay
from .frequency_model import Frequency


class RoutineBase(BaseModel):
    """Base model for routine data."""

    subscriber_id: int = Field(..., description="Subscriber the routine belongs to")
    name: str = Field(..., min_length=1, max_length=255)
    status: RoutineStatus = Field(default=RoutineStatus.DRAFT)
    start_date: date = Field(..., description="First date the routine applies")
    end_date: Optional[date] = Field(
        None, description="Last date the routine applies (open-ended when null)"
    )


class Routine(RoutineBase):
    """Complete routine model with database fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_published(self) -> bool:
        return self.status == RoutineStatus.PUBLISHED


class RoutineProductBase(BaseModel):
    """Base model for a routine step."""

    routine_id: int
    subscriber_id: int
    name: str = Field(..., min_length=1, max_length=255)
    time_of_day: TimeOfDay
    frequency: Frequency


class RoutineProduct(RoutineProductBase):
    """Complete routine product model with database fields."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
