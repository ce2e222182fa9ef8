# backend/routine_compliance/services/regeneration_service.py
"""
Regeneration Service - keeps materialized occurrences in step with routines.

Every entry point runs as one unit of work:

    lock routine (and product) rows
    -> delete pending occurrences of the affected scope dated today or later
    -> regenerate the rolling window, skipping slots already finalized
    -> bulk insert

so a failure anywhere rolls the delete back, and a second run over unchanged
products replaces its own output instead of appending to it. Finalized
occurrences (on-time, late, missed) are compliance history and are never
touched, whatever their date, except by on_product_deleted. Pending
occurrences dated before the subscriber's local today are left for the expiry
sweep.

Row locks are taken with a lock timeout. A regeneration that loses a lock race
is retried (once by default); if it still conflicts, RegenerationConflictError
is raised and the caller should retry the whole mutation.

Locked rows are re-read inside the transaction, so the regeneration always
works from the committed definition rather than the object passed in.
"""

from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional, Set, Union

from ..config import Settings, settings as default_settings
from ..constants import SCHEDULE_CHANGE_FIELD_ALIASES
from ..enums import LogEmoji, LoggerName, RegenerationScope, ScheduleChangeField
from ..exceptions import (
    ProductNotFoundError,
    RegenerationConflictError,
    RoutineNotFoundError,
    SubscriberNotFoundError,
)
from ..database.exceptions import LockConflictError
from ..models.routine_model import Routine, RoutineProduct
from ..models.schedule_result_model import GenerationWindow, RegenerationResult
from ..utils.time_utils import local_today, utc_now
from .logger import get_service_logger
from .scheduling.deadline_calculator import DeadlineCache
from .scheduling.window_generator import WindowGenerator, calculate_generation_window

logger = get_service_logger(LoggerName.REGENERATION_SERVICE, LogEmoji.CALENDAR)


class RegenerationCoordinator:
    """
    Orchestrates the transactional delete-then-regenerate protocol.

    Args:
        store: Schedule store exposing transaction() units of work
        generator: Window generator (defaults to one built from settings anchors)
        config: Settings providing window length, lock timeout and retries
        clock: Returns the current UTC instant
    """

    def __init__(
        self,
        store,
        generator: Optional[WindowGenerator] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.config = config or default_settings
        self.generator = generator or WindowGenerator(self.config.deadline_anchors)
        self.clock = clock

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def on_product_created(self, product: RoutineProduct) -> RegenerationResult:
        """Generate the current window for a new product of a published routine."""

        def work(uow) -> RegenerationResult:
            routine = self._lock_routine(uow, product.routine_id)
            current = self._lock_product(uow, product.id)
            return self._regenerate(
                uow, RegenerationScope.PRODUCT_CREATED, routine, [current]
            )

        return self._run(RegenerationScope.PRODUCT_CREATED, f"product {product.id}", work)

    def on_product_updated(
        self,
        product: RoutineProduct,
        changed_fields: Iterable[Union[ScheduleChangeField, str]],
    ) -> RegenerationResult:
        """
        Regenerate a product's future occurrences after a frequency or
        time-of-day change. Any other change (a rename) does nothing.
        """
        affecting = self._schedule_affecting(changed_fields)
        if not affecting:
            return RegenerationResult(
                scope=RegenerationScope.PRODUCT_UPDATED,
                routine_id=product.routine_id,
                product_ids=[product.id],
                skipped_reason="no schedule-affecting fields changed",
            )

        def work(uow) -> RegenerationResult:
            routine = self._lock_routine(uow, product.routine_id)
            current = self._lock_product(uow, product.id)
            return self._regenerate(
                uow, RegenerationScope.PRODUCT_UPDATED, routine, [current]
            )

        return self._run(RegenerationScope.PRODUCT_UPDATED, f"product {product.id}", work)

    def on_product_deleted(self, product_id: int) -> RegenerationResult:
        """Delete every occurrence of a product, past and future."""

        def work(uow) -> RegenerationResult:
            deleted = uow.occurrences.delete_by_product(product_id)
            return RegenerationResult(
                scope=RegenerationScope.PRODUCT_DELETED,
                product_ids=[product_id],
                deleted_count=deleted,
            )

        return self._run(RegenerationScope.PRODUCT_DELETED, f"product {product_id}", work)

    def on_routine_published(self, routine: Routine) -> RegenerationResult:
        """Generate the full window for every product of a published routine."""
        return self._regenerate_routine(RegenerationScope.ROUTINE_PUBLISHED, routine)

    def on_routine_dates_changed(self, routine: Routine) -> RegenerationResult:
        """Rebuild future occurrences after the routine's start or end date moved."""
        return self._regenerate_routine(RegenerationScope.ROUTINE_DATES_CHANGED, routine)

    def on_routine_unpublished(self, routine: Routine) -> RegenerationResult:
        """Drop pending future occurrences of every product; history stays."""

        def work(uow) -> RegenerationResult:
            current = self._lock_routine(uow, routine.id)
            timezone_name = self._subscriber_timezone(uow, current.subscriber_id)
            products = uow.routines.get_products_for_routine(current.id)
            product_ids = [product.id for product in products]
            today = local_today(timezone_name, self.clock())
            deleted = uow.occurrences.delete_pending_by_products_and_date_from(
                product_ids, today
            )
            return RegenerationResult(
                scope=RegenerationScope.ROUTINE_UNPUBLISHED,
                routine_id=current.id,
                product_ids=product_ids,
                deleted_count=deleted,
            )

        return self._run(
            RegenerationScope.ROUTINE_UNPUBLISHED, f"routine {routine.id}", work
        )

    def extend_window(self, routine: Routine) -> RegenerationResult:
        """
        Top up the rolling window: add occurrences after each product's latest
        materialized date up to the current horizon. Never deletes.
        """

        def work(uow) -> RegenerationResult:
            current = self._lock_routine(uow, routine.id)
            result = RegenerationResult(
                scope=RegenerationScope.WINDOW_EXTENSION, routine_id=current.id
            )
            if not current.is_published:
                result.skipped_reason = "routine is not published"
                return result

            timezone_name = self._subscriber_timezone(uow, current.subscriber_id)
            window = self._window(current, timezone_name)
            if window is None:
                result.skipped_reason = "routine has ended"
                return result
            result.window = window

            cache = DeadlineCache(timezone_name, self.generator.anchors)
            for product in uow.routines.get_products_for_routine(current.id):
                result.product_ids.append(product.id)
                latest = uow.occurrences.get_max_scheduled_date(product.id)
                start = window.start
                if latest is not None and latest >= start:
                    start = latest + timedelta(days=1)
                occurrences = self.generator.generate(
                    [product], start, window.end, timezone_name, cache=cache
                )
                result.inserted_count += uow.occurrences.insert_many(occurrences)
            return result

        return self._run(RegenerationScope.WINDOW_EXTENSION, f"routine {routine.id}", work)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _regenerate_routine(
        self, scope: RegenerationScope, routine: Routine
    ) -> RegenerationResult:
        def work(uow) -> RegenerationResult:
            current = self._lock_routine(uow, routine.id)
            products = uow.routines.get_products_for_routine(current.id)
            return self._regenerate(uow, scope, current, products)

        return self._run(scope, f"routine {routine.id}", work)

    def _regenerate(
        self,
        uow,
        scope: RegenerationScope,
        routine: Routine,
        products: List[RoutineProduct],
    ) -> RegenerationResult:
        """Delete pending future occurrences of `products` and regenerate the window."""
        result = RegenerationResult(
            scope=scope,
            routine_id=routine.id,
            product_ids=[product.id for product in products],
        )
        if not routine.is_published:
            result.skipped_reason = "routine is not published"
            return result

        timezone_name = self._subscriber_timezone(uow, routine.subscriber_id)
        today = local_today(timezone_name, self.clock())
        window = self._window(routine, timezone_name)

        occurrences = uow.occurrences
        result.deleted_count = occurrences.delete_pending_by_products_and_date_from(
            result.product_ids, today
        )
        if window is None:
            return result

        result.window = window
        finalized = occurrences.find_finalized_keys(result.product_ids, window.start)
        generated = []
        for occurrence in self.generator.generate_for_window(
            products, window, timezone_name
        ):
            key = (
                occurrence.routine_product_id,
                occurrence.scheduled_date,
                occurrence.scheduled_time_of_day,
            )
            if key in finalized:
                result.preserved_count += 1
                continue
            generated.append(occurrence)
        result.inserted_count = occurrences.insert_many(generated)
        return result

    def _window(self, routine: Routine, timezone_name: str) -> Optional[GenerationWindow]:
        return calculate_generation_window(
            routine,
            timezone_name,
            self.clock(),
            window_days=self.config.schedule_window_days,
        )

    def _lock_routine(self, uow, routine_id: int) -> Routine:
        routine = uow.routines.lock_routine(
            routine_id, self.config.regeneration_lock_timeout_ms
        )
        if routine is None:
            raise RoutineNotFoundError(f"Routine {routine_id} not found")
        return routine

    def _lock_product(self, uow, product_id: int) -> RoutineProduct:
        product = uow.routines.lock_product(
            product_id, self.config.regeneration_lock_timeout_ms
        )
        if product is None:
            raise ProductNotFoundError(f"Routine product {product_id} not found")
        return product

    def _subscriber_timezone(self, uow, subscriber_id: int) -> str:
        timezone_name = uow.routines.get_subscriber_timezone(subscriber_id)
        if timezone_name is None:
            raise SubscriberNotFoundError(f"Subscriber {subscriber_id} not found")
        return timezone_name

    @staticmethod
    def _schedule_affecting(
        changed_fields: Iterable[Union[ScheduleChangeField, str]],
    ) -> Set[ScheduleChangeField]:
        affecting = set()
        for field in changed_fields:
            field = SCHEDULE_CHANGE_FIELD_ALIASES.get(field, field)
            try:
                affecting.add(ScheduleChangeField(field))
            except ValueError:
                logger.debug(f"Ignoring non-scheduling product field '{field}'")
        return affecting

    def _run(
        self,
        scope: RegenerationScope,
        target: str,
        work: Callable[..., RegenerationResult],
    ) -> RegenerationResult:
        """Run `work` in one transaction, retrying lock conflicts."""
        max_attempts = 1 + self.config.regeneration_max_retries
        attempt = 0
        while True:
            attempt += 1
            try:
                with self.store.transaction() as uow:
                    result = work(uow)
            except LockConflictError as e:
                if attempt >= max_attempts:
                    logger.error(
                        f"Regeneration for {target} still conflicting after "
                        f"{attempt} attempt(s)",
                        error_context={"scope": scope.value},
                        emoji=LogEmoji.LOCK,
                    )
                    raise RegenerationConflictError(target, attempt) from e
                logger.warning(
                    f"Lock conflict regenerating {target}, retrying",
                    extra_context={"scope": scope.value, "attempt": attempt},
                    emoji=LogEmoji.LOCK,
                )
                continue

            result.attempts = attempt
            if result.skipped:
                logger.debug(
                    f"Regeneration for {target} skipped: {result.skipped_reason}",
                    extra_context={"scope": scope.value},
                )
            else:
                logger.info(
                    f"Regenerated {target}",
                    extra_context={
                        "scope": scope.value,
                        "deleted": result.deleted_count,
                        "inserted": result.inserted_count,
                        "preserved": result.preserved_count,
                        "attempts": attempt,
                    },
                )
            return result
