# backend/tests/fakes.py
"""
In-memory schedule store for service tests.

Mirrors PostgresScheduleStore: transaction() yields a unit of work with
.occurrences and .routines, commits on normal exit and restores the previous
occurrence set when the block raises.
"""

from contextlib import contextmanager
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Set, Tuple

from routine_compliance.database.exceptions import (
    LockConflictError,
    ScheduledOccurrenceOperationError,
)
from routine_compliance.enums import OccurrenceStatus, RoutineStatus, TimeOfDay
from routine_compliance.models import (
    Routine,
    RoutineProduct,
    ScheduledOccurrence,
    ScheduledOccurrenceCreate,
    daily,
)


class InMemoryOccurrences:
    def __init__(self, store: "InMemoryScheduleStore") -> None:
        self.store = store

    def insert_many(self, occurrences: Sequence[ScheduledOccurrenceCreate]) -> int:
        if self.store.fail_on_insert:
            raise ScheduledOccurrenceOperationError(
                "Simulated insert failure", operation="insert_many"
            )
        for occurrence in occurrences:
            occurrence_id = self.store.next_id()
            self.store.occurrences[occurrence_id] = ScheduledOccurrence(
                id=occurrence_id, **occurrence.model_dump()
            )
        return len(occurrences)

    def delete_pending_by_product_and_date_from(
        self, product_id: int, from_date: date
    ) -> int:
        return self.delete_pending_by_products_and_date_from([product_id], from_date)

    def delete_pending_by_products_and_date_from(
        self, product_ids: Sequence[int], from_date: date
    ) -> int:
        doomed = [
            occurrence_id
            for occurrence_id, occurrence in self.store.occurrences.items()
            if occurrence.routine_product_id in product_ids
            and occurrence.scheduled_date >= from_date
            and occurrence.is_pending
        ]
        for occurrence_id in doomed:
            del self.store.occurrences[occurrence_id]
        return len(doomed)

    def find_finalized_keys(
        self, product_ids: Sequence[int], from_date: date
    ) -> Set[Tuple[int, date, TimeOfDay]]:
        return {
            (o.routine_product_id, o.scheduled_date, o.scheduled_time_of_day)
            for o in self.store.occurrences.values()
            if o.routine_product_id in product_ids
            and o.scheduled_date >= from_date
            and not o.is_pending
        }

    def delete_by_product(self, product_id: int) -> int:
        doomed = [
            occurrence_id
            for occurrence_id, occurrence in self.store.occurrences.items()
            if occurrence.routine_product_id == product_id
        ]
        for occurrence_id in doomed:
            del self.store.occurrences[occurrence_id]
        return len(doomed)

    def find_pending_expired(
        self, as_of: datetime, subscriber_id: Optional[int] = None
    ) -> List[ScheduledOccurrence]:
        rows = [
            occurrence
            for occurrence in self.store.occurrences.values()
            if occurrence.is_pending
            and occurrence.grace_period_end <= as_of
            and (subscriber_id is None or occurrence.subscriber_id == subscriber_id)
        ]
        return sorted(rows, key=lambda o: (o.scheduled_date, o.id))

    def update_completion(
        self,
        occurrence_id: int,
        completed_at: Optional[datetime],
        status: OccurrenceStatus,
    ) -> Optional[ScheduledOccurrence]:
        current = self.store.occurrences.get(occurrence_id)
        if current is None or not current.is_pending:
            return None
        updated = current.model_copy(
            update={"status": OccurrenceStatus(status), "completed_at": completed_at}
        )
        self.store.occurrences[occurrence_id] = updated
        return updated

    def get_by_id(self, occurrence_id: int) -> Optional[ScheduledOccurrence]:
        return self.store.occurrences.get(occurrence_id)

    def find_by_subscriber_and_date(
        self,
        subscriber_id: int,
        scheduled_date: date,
        time_of_day: Optional[TimeOfDay] = None,
    ) -> List[ScheduledOccurrence]:
        return [
            occurrence
            for occurrence in sorted(self.store.occurrences.values(), key=lambda o: o.id)
            if occurrence.subscriber_id == subscriber_id
            and occurrence.scheduled_date == scheduled_date
            and (time_of_day is None or occurrence.scheduled_time_of_day == time_of_day)
        ]

    def find_pending_by_subscriber_and_date(
        self,
        subscriber_id: int,
        scheduled_date: date,
        time_of_day: Optional[TimeOfDay] = None,
    ) -> List[ScheduledOccurrence]:
        return [
            occurrence
            for occurrence in self.find_by_subscriber_and_date(
                subscriber_id, scheduled_date, time_of_day
            )
            if occurrence.is_pending
        ]

    def get_max_scheduled_date(self, product_id: int) -> Optional[date]:
        dates = [
            occurrence.scheduled_date
            for occurrence in self.store.occurrences.values()
            if occurrence.routine_product_id == product_id
        ]
        return max(dates) if dates else None


class InMemoryRoutines:
    def __init__(self, store: "InMemoryScheduleStore") -> None:
        self.store = store

    def get_routine(self, routine_id: int) -> Optional[Routine]:
        return self.store.routines.get(routine_id)

    def get_product(self, product_id: int) -> Optional[RoutineProduct]:
        return self.store.products.get(product_id)

    def get_products_for_routine(self, routine_id: int) -> List[RoutineProduct]:
        return [
            product
            for product in sorted(self.store.products.values(), key=lambda p: p.id)
            if product.routine_id == routine_id
        ]

    def get_subscriber_timezone(self, subscriber_id: int) -> Optional[str]:
        return self.store.subscribers.get(subscriber_id)

    def list_published_routines(self) -> List[Routine]:
        return [
            routine
            for routine in sorted(self.store.routines.values(), key=lambda r: r.id)
            if routine.is_published
        ]

    def lock_routine(self, routine_id: int, timeout_ms: int) -> Optional[Routine]:
        self.store.lock_calls.append(("routine", routine_id, timeout_ms))
        if self.store.lock_conflicts > 0:
            self.store.lock_conflicts -= 1
            raise LockConflictError(
                f"Failed to lock routine {routine_id} (lock conflict)",
                operation="lock_routine",
            )
        return self.store.routines.get(routine_id)

    def lock_product(self, product_id: int, timeout_ms: int) -> Optional[RoutineProduct]:
        self.store.lock_calls.append(("product", product_id, timeout_ms))
        return self.store.products.get(product_id)


class InMemoryUnitOfWork:
    def __init__(self, store: "InMemoryScheduleStore") -> None:
        self.occurrences = InMemoryOccurrences(store)
        self.routines = InMemoryRoutines(store)


class InMemoryScheduleStore:
    """Dictionary-backed store with snapshot rollback."""

    def __init__(self) -> None:
        self.subscribers: Dict[int, str] = {}
        self.routines: Dict[int, Routine] = {}
        self.products: Dict[int, RoutineProduct] = {}
        self.occurrences: Dict[int, ScheduledOccurrence] = {}
        self._next_id = 1
        self.lock_conflicts = 0
        self.fail_on_insert = False
        self.lock_calls: list = []
        self.commits = 0
        self.rollbacks = 0

    def next_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    @contextmanager
    def transaction(self):
        snapshot = (dict(self.occurrences), self._next_id)
        try:
            yield InMemoryUnitOfWork(self)
        except BaseException:
            self.occurrences, self._next_id = snapshot
            self.rollbacks += 1
            raise
        self.commits += 1

    # Seeding helpers

    def add_subscriber(self, subscriber_id: int, timezone_name: str) -> None:
        self.subscribers[subscriber_id] = timezone_name

    def add_routine(self, **overrides) -> Routine:
        data = {
            "id": len(self.routines) + 1,
            "subscriber_id": 1,
            "name": "Morning glow",
            "status": RoutineStatus.PUBLISHED,
            "start_date": date(2025, 6, 1),
            "end_date": None,
        }
        data.update(overrides)
        routine = Routine(**data)
        self.routines[routine.id] = routine
        return routine

    def add_product(self, routine: Routine, **overrides) -> RoutineProduct:
        data = {
            "id": 100 + len(self.products),
            "routine_id": routine.id,
            "subscriber_id": routine.subscriber_id,
            "name": "Cleanser",
            "time_of_day": TimeOfDay.MORNING,
            "frequency": daily(),
        }
        data.update(overrides)
        product = RoutineProduct(**data)
        self.products[product.id] = product
        return product

    def update_product(self, product: RoutineProduct, **changes) -> RoutineProduct:
        updated = product.model_copy(update=changes)
        self.products[updated.id] = updated
        return updated

    def update_routine(self, routine: Routine, **changes) -> Routine:
        updated = routine.model_copy(update=changes)
        self.routines[updated.id] = updated
        return updated

    def occurrences_for(self, product_id: int) -> List[ScheduledOccurrence]:
        return sorted(
            (o for o in self.occurrences.values() if o.routine_product_id == product_id),
            key=lambda o: (o.scheduled_date, o.id),
        )
