# backend/routine_compliance/models/frequency_model.py
"""
Frequency Models - recurrence rule of a routine product.

A frequency is a tagged union: DailyFrequency, or WeekdaysFrequency carrying a
7-bit weekday mask (bit 0 = Sunday ... bit 6 = Saturday). Invalid shapes such
as a weekday rule with no days are rejected on construction, so build values
through the factories below rather than by hand.
"""

from typing import Annotated, Iterable, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..constants import LEGACY_FREQUENCY_DAILY, LEGACY_FREQUENCY_LABELS, WEEKDAY_MASK_ALL
from ..enums import FrequencyKind, Weekday
from ..exceptions import InvalidFrequencyError


class DailyFrequency(BaseModel):
    """Occurs on every calendar date."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[FrequencyKind.DAILY] = FrequencyKind.DAILY

    def describe(self) -> str:
        return "daily"


class WeekdaysFrequency(BaseModel):
    """Occurs on the weekdays whose bits are set in `mask`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[FrequencyKind.WEEKDAYS] = FrequencyKind.WEEKDAYS
    mask: int = Field(
        ...,
        ge=1,
        le=WEEKDAY_MASK_ALL,
        description="7-bit weekday set, bit 0 = Sunday",
    )

    @property
    def days(self) -> List[Weekday]:
        return [day for day in Weekday if self.mask & day.bit]

    def describe(self) -> str:
        return ", ".join(day.name.title() for day in self.days)


Frequency = Annotated[
    Union[DailyFrequency, WeekdaysFrequency], Field(discriminator="kind")
]

_frequency_adapter: TypeAdapter = TypeAdapter(Frequency)


def daily() -> DailyFrequency:
    return DailyFrequency()


def _to_weekday(day: Union[Weekday, int, str]) -> Weekday:
    if isinstance(day, Weekday):
        return day
    if isinstance(day, str):
        return Weekday.from_name(day)
    return Weekday(day)


def weekdays(*days: Union[Weekday, int, str]) -> WeekdaysFrequency:
    """
    Build a weekday frequency from Weekday members, indexes or day names.

    Raises:
        InvalidFrequencyError: If no days are given or a day is not recognized
    """
    if not days:
        raise InvalidFrequencyError("A weekday frequency needs at least one day")

    mask = 0
    for day in days:
        try:
            mask |= _to_weekday(day).bit
        except ValueError as e:
            raise InvalidFrequencyError(f"Invalid weekday: {day!r}") from e
    return WeekdaysFrequency(mask=mask)


def from_mask(mask: int) -> WeekdaysFrequency:
    """
    Build a weekday frequency from a raw mask.

    Raises:
        InvalidFrequencyError: If the mask is empty or has bits above Saturday
    """
    try:
        return WeekdaysFrequency(mask=mask)
    except ValidationError as e:
        raise InvalidFrequencyError(
            f"Weekday mask must be between 1 and {WEEKDAY_MASK_ALL}, got {mask!r}"
        ) from e


def from_storage(kind: str, mask: Optional[int]) -> Union[DailyFrequency, WeekdaysFrequency]:
    """Rebuild a frequency from its persisted (frequency_kind, weekday_mask) columns."""
    payload = {"kind": kind}
    if mask is not None:
        payload["mask"] = mask
    try:
        payload["kind"] = FrequencyKind(kind)
        return _frequency_adapter.validate_python(payload)
    except (ValueError, ValidationError) as e:
        raise InvalidFrequencyError(
            f"Invalid stored frequency: kind={kind!r}, mask={mask!r}"
        ) from e


def parse_frequency(
    label: str, days: Optional[Sequence[str]] = None
) -> Union[DailyFrequency, WeekdaysFrequency]:
    """
    Convert the legacy (label, day names) product representation.

    "daily" ignores any day list. "2x per week", "3x per week" and
    "specific_days" all schedule on exactly the named days.

    Raises:
        InvalidFrequencyError: For unknown labels, or a weekly label with no days
    """
    normalized = (label or "").strip().lower()
    if normalized not in LEGACY_FREQUENCY_LABELS:
        raise InvalidFrequencyError(f"Unknown frequency label: {label!r}")

    if normalized == LEGACY_FREQUENCY_DAILY:
        return daily()

    if not days:
        raise InvalidFrequencyError(
            f"Frequency '{normalized}' requires at least one day"
        )
    return weekdays(*days)


def weekday_names(frequency: Union[DailyFrequency, WeekdaysFrequency]) -> List[str]:
    """Day names for display; all seven for a daily frequency."""
    selected: Iterable[Weekday]
    if isinstance(frequency, WeekdaysFrequency):
        selected = frequency.days
    else:
        selected = list(Weekday)
    return [day.name.title() for day in selected]
