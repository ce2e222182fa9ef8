# backend/routine_compliance/services/compliance_service.py
"""
Compliance Service - the completion state machine.

States: pending (initial), on-time, late, missed. Every state except pending
is terminal.

Transition A (completion at instant t, from pending):
    t <= on_time_deadline                     -> on-time
    on_time_deadline < t <= grace_period_end  -> late
    t > grace_period_end                      -> rejected (GracePeriodExpiredError)

Transition B (expiry sweep at instant now, from pending):
    now >= grace_period_end                   -> missed, completed_at stays null

Both transitions are written with a compare-and-set update that only matches a
row still in pending, so when a completion and a sweep race on the same row the
first writer wins and the other observes a terminal status.
"""

from datetime import date, datetime
from typing import Callable, Iterable, Optional

from ..enums import LogEmoji, LoggerName, OccurrenceStatus, TimeOfDay
from ..exceptions import (
    AlreadyFinalizedError,
    ComplianceTransitionError,
    GracePeriodExpiredError,
    NotFoundError,
    OccurrenceNotFoundError,
)
from ..models.occurrence_model import ScheduledOccurrence
from ..models.schedule_result_model import (
    BulkCompletionResult,
    CompletionOutcome,
    SweepResult,
)
from ..utils.time_utils import ensure_utc, utc_now
from .logger import get_service_logger

logger = get_service_logger(LoggerName.COMPLIANCE_SERVICE, LogEmoji.ROUTINE)


class ComplianceClassifier:
    """Pure decisions of the completion state machine; never touches storage."""

    @staticmethod
    def classify_completion(
        occurrence: ScheduledOccurrence, completed_at: datetime
    ) -> OccurrenceStatus:
        """
        Status a completion at completed_at would produce.

        Raises:
            AlreadyFinalizedError: If the occurrence is not pending
            GracePeriodExpiredError: If completed_at is after the grace period
        """
        if occurrence.status.is_terminal:
            raise AlreadyFinalizedError(occurrence.id, occurrence.status)

        completed_at = ensure_utc(completed_at)
        if completed_at <= occurrence.on_time_deadline:
            return OccurrenceStatus.ON_TIME
        if completed_at <= occurrence.grace_period_end:
            return OccurrenceStatus.LATE
        raise GracePeriodExpiredError(
            occurrence.id, occurrence.grace_period_end, completed_at
        )

    @staticmethod
    def is_expired(occurrence: ScheduledOccurrence, now: datetime) -> bool:
        """True if the sweep at `now` would move this occurrence to missed."""
        return occurrence.is_pending and ensure_utc(now) >= occurrence.grace_period_end

    @classmethod
    def effective_status(
        cls, occurrence: ScheduledOccurrence, now: datetime
    ) -> OccurrenceStatus:
        """Stored status, reporting an overdue pending row as missed."""
        if cls.is_expired(occurrence, now):
            return OccurrenceStatus.MISSED
        return occurrence.status


class ComplianceService:
    """
    Applies state machine transitions through the schedule store.

    Args:
        store: Schedule store exposing transaction() units of work
        classifier: State machine decisions (defaults to ComplianceClassifier)
        clock: Returns the current UTC instant
    """

    def __init__(
        self,
        store,
        classifier: Optional[ComplianceClassifier] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.classifier = classifier or ComplianceClassifier()
        self.clock = clock

    def mark_done(
        self,
        occurrence_id: int,
        completed_at: Optional[datetime] = None,
        subscriber_id: Optional[int] = None,
    ) -> ScheduledOccurrence:
        """
        Record that the subscriber performed a step (Transition A).

        Args:
            occurrence_id: Occurrence to complete
            completed_at: Completion instant (defaults to now)
            subscriber_id: When given, the occurrence must belong to this subscriber

        Returns:
            The completed occurrence

        Raises:
            OccurrenceNotFoundError: Missing, or owned by another subscriber
            AlreadyFinalizedError: The occurrence is no longer pending
            GracePeriodExpiredError: completed_at is after the grace period
        """
        completed_at = ensure_utc(completed_at or self.clock())

        with self.store.transaction() as uow:
            updated = self._complete(uow, occurrence_id, completed_at, subscriber_id)

        logger.info(
            f"Occurrence {occurrence_id} marked {updated.status.value}",
            extra_context={
                "product_id": updated.routine_product_id,
                "scheduled_date": updated.scheduled_date,
            },
            emoji=LogEmoji.COMPLETED,
        )
        return updated

    def _complete(
        self,
        uow,
        occurrence_id: int,
        completed_at: datetime,
        subscriber_id: Optional[int],
    ) -> ScheduledOccurrence:
        occurrence = uow.occurrences.get_by_id(occurrence_id)
        if occurrence is None or (
            subscriber_id is not None and occurrence.subscriber_id != subscriber_id
        ):
            raise OccurrenceNotFoundError(f"Occurrence {occurrence_id} not found")

        try:
            status = self.classifier.classify_completion(occurrence, completed_at)
        except ComplianceTransitionError as e:
            logger.info(f"Completion rejected: {e}", emoji=LogEmoji.CANCELED)
            raise

        updated = uow.occurrences.update_completion(occurrence_id, completed_at, status)
        if updated is None:
            # Lost the race to a concurrent completion or sweep
            current = uow.occurrences.get_by_id(occurrence_id)
            if current is None:
                raise OccurrenceNotFoundError(f"Occurrence {occurrence_id} not found")
            logger.info(
                f"Occurrence {occurrence_id} finalized concurrently as "
                f"'{current.status.value}'",
                emoji=LogEmoji.CANCELED,
            )
            raise AlreadyFinalizedError(occurrence_id, current.status)
        return updated

    def complete_many(
        self,
        occurrence_ids: Iterable[int],
        completed_at: Optional[datetime] = None,
        subscriber_id: Optional[int] = None,
    ) -> BulkCompletionResult:
        """
        Apply Transition A to each occurrence independently.

        Rejections (finalized, expired, not found) are collected per row
        instead of raised.
        """
        completed_at = ensure_utc(completed_at or self.clock())
        result = BulkCompletionResult(completed_at=completed_at)

        with self.store.transaction() as uow:
            for occurrence_id in occurrence_ids:
                try:
                    updated = self._complete(
                        uow, occurrence_id, completed_at, subscriber_id
                    )
                except (ComplianceTransitionError, NotFoundError) as e:
                    result.outcomes.append(
                        CompletionOutcome(occurrence_id=occurrence_id, error=str(e))
                    )
                    continue
                result.outcomes.append(
                    CompletionOutcome(
                        occurrence_id=occurrence_id,
                        status=updated.status,
                        occurrence=updated,
                    )
                )

        logger.info(
            f"Bulk completion: {len(result.completed)} completed, "
            f"{len(result.rejected)} rejected",
            emoji=LogEmoji.COMPLETED,
        )
        return result

    def complete_for_date(
        self,
        subscriber_id: int,
        scheduled_date: date,
        completed_at: Optional[datetime] = None,
        time_of_day: Optional[TimeOfDay] = None,
    ) -> BulkCompletionResult:
        """Complete every pending occurrence a subscriber has on one date."""
        with self.store.transaction() as uow:
            pending = uow.occurrences.find_pending_by_subscriber_and_date(
                subscriber_id, scheduled_date, time_of_day
            )
        return self.complete_many(
            [occurrence.id for occurrence in pending],
            completed_at=completed_at,
            subscriber_id=subscriber_id,
        )

    def sweep_expired(
        self,
        now: Optional[datetime] = None,
        subscriber_id: Optional[int] = None,
    ) -> SweepResult:
        """
        Move every pending occurrence whose grace period has ended to missed
        (Transition B). Idempotent; rows finalized concurrently are skipped.
        """
        now = ensure_utc(now or self.clock())
        result = SweepResult(as_of=now, subscriber_id=subscriber_id)

        with self.store.transaction() as uow:
            candidates = uow.occurrences.find_pending_expired(now, subscriber_id)
            result.examined_count = len(candidates)
            for occurrence in candidates:
                if not self.classifier.is_expired(occurrence, now):
                    continue
                updated = uow.occurrences.update_completion(
                    occurrence.id, None, OccurrenceStatus.MISSED
                )
                if updated is not None:
                    result.missed_ids.append(updated.id)

        if result.missed_ids:
            logger.info(
                f"Expiry sweep marked {result.missed_count} occurrences missed",
                extra_context={"as_of": now.isoformat(), "subscriber_id": subscriber_id},
                emoji=LogEmoji.CLEANUP,
            )
        else:
            logger.debug("Expiry sweep found nothing to mark", emoji=LogEmoji.CLEANUP)
        return result
