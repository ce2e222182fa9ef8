# backend/routine_compliance/exceptions.py
"""
Custom exceptions for the routine compliance engine.

Centralized location for all domain exception classes. Database-layer
failures live in database/exceptions.py and are not duplicated here.
"""

from datetime import datetime
from typing import Optional

from .enums import OccurrenceStatus


class RoutineComplianceError(Exception):
    """Base exception for all routine compliance errors."""

    pass


# ---------------------------------------------------------------------------
# Validation errors: rejected before any generation work begins
# ---------------------------------------------------------------------------


class ValidationError(RoutineComplianceError):
    """Base class for construction-time validation failures."""

    pass


class InvalidTimezoneError(ValidationError):
    """Raised when a timezone identifier cannot be resolved."""

    def __init__(self, timezone_name: object):
        super().__init__(f"Unknown or invalid timezone: {timezone_name!r}")
        self.timezone_name = timezone_name


class InvalidFrequencyError(ValidationError):
    """Raised for empty weekday masks, unknown day names or frequency labels."""

    pass


class InvalidWindowError(ValidationError):
    """Raised when a routine's end date precedes its start date."""

    pass


class InvalidInstantError(ValidationError, ValueError):
    """Raised when a naive datetime is given where an absolute instant is required."""

    def __init__(self, value: object):
        super().__init__(f"Naive datetime is not a valid instant: {value!r}")
        self.value = value


# ---------------------------------------------------------------------------
# State machine violations: expected, user-facing outcomes
# ---------------------------------------------------------------------------


class ComplianceTransitionError(RoutineComplianceError):
    """Base class for rejected completion transitions."""

    def __init__(self, message: str, occurrence_id: Optional[int] = None):
        super().__init__(message)
        self.occurrence_id = occurrence_id


class AlreadyFinalizedError(ComplianceTransitionError):
    """Raised when completing an occurrence that is no longer pending."""

    def __init__(self, occurrence_id: Optional[int], status: OccurrenceStatus):
        super().__init__(
            f"Occurrence {occurrence_id} is already finalized as '{status.value}'",
            occurrence_id=occurrence_id,
        )
        self.status = status


class GracePeriodExpiredError(ComplianceTransitionError):
    """Raised when a completion arrives after the grace period ended."""

    def __init__(
        self,
        occurrence_id: Optional[int],
        grace_period_end: datetime,
        completed_at: datetime,
    ):
        super().__init__(
            f"Occurrence {occurrence_id} can no longer be completed "
            f"(grace period ended {grace_period_end.isoformat()})",
            occurrence_id=occurrence_id,
        )
        self.grace_period_end = grace_period_end
        self.completed_at = completed_at


# ---------------------------------------------------------------------------
# Lookup errors
# ---------------------------------------------------------------------------


class NotFoundError(RoutineComplianceError):
    """Base class for missing entities."""

    pass


class OccurrenceNotFoundError(NotFoundError):
    """Custom exception for occurrence not found errors."""

    pass


class RoutineNotFoundError(NotFoundError):
    """Custom exception for routine not found errors."""

    pass


class ProductNotFoundError(NotFoundError):
    """Custom exception for routine product not found errors."""

    pass


class SubscriberNotFoundError(NotFoundError):
    """Custom exception for subscriber not found errors."""

    pass


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class RegenerationConflictError(RoutineComplianceError):
    """Raised when a regeneration keeps losing lock races after its retries."""

    def __init__(self, scope: str, attempts: int):
        super().__init__(
            f"Regeneration for {scope} conflicted with a concurrent change "
            f"after {attempts} attempt(s); retry the mutation"
        )
        self.scope = scope
        self.attempts = attempts
