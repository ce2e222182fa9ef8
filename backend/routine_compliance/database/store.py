# backend/routine_compliance/database/store.py
"""
Schedule Store - unit of work over the occurrence and routine operations.

    with store.transaction() as uow:
        uow.routines.lock_routine(routine_id, timeout_ms)
        uow.occurrences.delete_pending_by_products_and_date_from(product_ids, today)
        uow.occurrences.insert_many(occurrences)

Everything inside the block runs on one connection and one transaction: it
commits when the block exits normally and rolls back when it raises. Use
store.bind(conn) to run units of work inside a transaction the caller already
opened (for example the one that saved the routine edit); each unit of work is
then a savepoint of the caller's transaction.
"""

from contextlib import contextmanager
from typing import Any, Generator

from .core import SyncDatabase
from .occurrence_operations import ScheduledOccurrenceOperations
from .routine_operations import RoutineOperations


class BoundConnection:
    """Exposes one open connection through the get_connection() interface."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    @contextmanager
    def get_connection(self) -> Generator[Any, None, None]:
        yield self._conn


class ScheduleUnitOfWork:
    """Operations sharing a single transaction."""

    def __init__(self, db: Any) -> None:
        self.occurrences = ScheduledOccurrenceOperations(db)
        self.routines = RoutineOperations(db)


class PostgresScheduleStore:
    """Opens one pooled connection and transaction per unit of work."""

    def __init__(self, db: SyncDatabase) -> None:
        self.db = db

    @contextmanager
    def transaction(self) -> Generator[ScheduleUnitOfWork, None, None]:
        with self.db.get_connection() as conn:
            yield ScheduleUnitOfWork(BoundConnection(conn))

    def bind(self, conn: Any) -> "BoundScheduleStore":
        return BoundScheduleStore(conn)


class BoundScheduleStore:
    """Runs units of work as savepoints inside a caller-owned transaction."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    @contextmanager
    def transaction(self) -> Generator[ScheduleUnitOfWork, None, None]:
        with self._conn.transaction():
            yield ScheduleUnitOfWork(BoundConnection(self._conn))
