# backend/routine_compliance/database/occurrence_operations.py
"""
Scheduled Occurrence Operations - persistence boundary for compliance records.

Implements the schedule repository: bulk insert of generated occurrences,
product-scoped deletes, the expiry sweep query and the compare-and-set
completion update.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

import psycopg

from ..enums import OccurrenceStatus, TimeOfDay
from ..models.occurrence_model import ScheduledOccurrence, ScheduledOccurrenceCreate
from ..utils.time_utils import utc_now
from .exceptions import ScheduledOccurrenceOperationError, translate_error


class ScheduledOccurrenceQueryBuilder:
    """Centralized query builder for scheduled occurrence operations.

    IMPORTANT: For optimal performance, ensure these indexes exist:
    - CREATE INDEX idx_occurrences_product_date ON scheduled_occurrences(routine_product_id, scheduled_date);
    - CREATE INDEX idx_occurrences_subscriber_date ON scheduled_occurrences(subscriber_id, scheduled_date);
    - CREATE INDEX idx_occurrences_pending_grace ON scheduled_occurrences(grace_period_end) WHERE status = 'pending';
    """

    @staticmethod
    def get_base_fields():
        """Get standard fields for occurrence queries."""
        return """
            id, routine_product_id, subscriber_id, scheduled_date,
            scheduled_time_of_day, on_time_deadline, grace_period_end,
            completed_at, status, created_at, updated_at
        """

    @staticmethod
    def build_insert_query():
        """Build insert query for one generated occurrence using named parameters."""
        return """
            INSERT INTO scheduled_occurrences (
                routine_product_id, subscriber_id, scheduled_date,
                scheduled_time_of_day, on_time_deadline, grace_period_end,
                completed_at, status
            ) VALUES (
                %(routine_product_id)s, %(subscriber_id)s, %(scheduled_date)s,
                %(scheduled_time_of_day)s, %(on_time_deadline)s, %(grace_period_end)s,
                %(completed_at)s, %(status)s
            )
        """

    @staticmethod
    def build_pending_expired_query(scoped_to_subscriber: bool):
        """Build the expiry sweep query, optionally scoped to one subscriber."""
        fields = ScheduledOccurrenceQueryBuilder.get_base_fields()
        subscriber_clause = (
            "AND subscriber_id = %(subscriber_id)s" if scoped_to_subscriber else ""
        )
        return f"""
            SELECT {fields}
            FROM scheduled_occurrences
            WHERE status = 'pending'
              AND grace_period_end <= %(as_of)s
              {subscriber_clause}
            ORDER BY scheduled_date, id
        """

    @staticmethod
    def build_completion_update_query():
        """Compare-and-set update: only a row still pending is changed."""
        fields = ScheduledOccurrenceQueryBuilder.get_base_fields()
        return f"""
            UPDATE scheduled_occurrences
            SET completed_at = %(completed_at)s,
                status = %(status)s,
                updated_at = %(updated_at)s
            WHERE id = %(occurrence_id)s
              AND status = 'pending'
            RETURNING {fields}
        """


class ScheduledOccurrenceOperations:
    """
    Sync database operations for scheduled occurrences.

    `db` is anything exposing a get_connection() context manager: a
    SyncDatabase for standalone calls, or a bound connection from the
    schedule store for calls inside one unit of work.
    """

    def __init__(self, db) -> None:
        """Initialize with database instance."""
        self.db = db

    def _row_to_occurrence(self, row: Dict[str, Any]) -> ScheduledOccurrence:
        """Convert database row to ScheduledOccurrence model."""
        return ScheduledOccurrence.model_validate(dict(row))

    def insert_many(self, occurrences: Sequence[ScheduledOccurrenceCreate]) -> int:
        """
        Bulk-insert generated occurrences.

        Returns:
            Number of rows inserted
        """
        if not occurrences:
            return 0

        params = [
            {
                "routine_product_id": occurrence.routine_product_id,
                "subscriber_id": occurrence.subscriber_id,
                "scheduled_date": occurrence.scheduled_date,
                "scheduled_time_of_day": occurrence.scheduled_time_of_day.value,
                "on_time_deadline": occurrence.on_time_deadline,
                "grace_period_end": occurrence.grace_period_end,
                "completed_at": occurrence.completed_at,
                "status": occurrence.status.value,
            }
            for occurrence in occurrences
        ]
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.executemany(
                        ScheduledOccurrenceQueryBuilder.build_insert_query(), params
                    )
            return len(params)
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                "Failed to insert scheduled occurrences",
                operation="insert_many",
                details={"count": len(params)},
            ) from e

    def delete_pending_by_product_and_date_from(
        self, product_id: int, from_date: date
    ) -> int:
        """Delete a product's pending occurrences scheduled on or after from_date."""
        query = """
            DELETE FROM scheduled_occurrences
            WHERE routine_product_id = %(product_id)s
              AND scheduled_date >= %(from_date)s
              AND status = 'pending'
        """
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        query, {"product_id": product_id, "from_date": from_date}
                    )
                    return cur.rowcount
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                f"Failed to delete occurrences for product {product_id}",
                operation="delete_pending_by_product_and_date_from",
            ) from e

    def delete_pending_by_products_and_date_from(
        self, product_ids: Sequence[int], from_date: date
    ) -> int:
        """
        Delete pending occurrences on or after from_date for several products.

        Finalized rows (on-time, late, missed) are compliance history and stay,
        even when dated today or later.
        """
        if not product_ids:
            return 0

        query = """
            DELETE FROM scheduled_occurrences
            WHERE routine_product_id = ANY(%(product_ids)s)
              AND scheduled_date >= %(from_date)s
              AND status = 'pending'
        """
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        query,
                        {"product_ids": list(product_ids), "from_date": from_date},
                    )
                    return cur.rowcount
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                "Failed to delete occurrences for products",
                operation="delete_pending_by_products_and_date_from",
                details={"product_ids": list(product_ids)},
            ) from e

    def delete_by_product(self, product_id: int) -> int:
        """Delete every occurrence of a product, past and future."""
        query = (
            "DELETE FROM scheduled_occurrences WHERE routine_product_id = %(product_id)s"
        )
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, {"product_id": product_id})
                    return cur.rowcount
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                f"Failed to delete occurrences for product {product_id}",
                operation="delete_by_product",
            ) from e

    def find_pending_expired(
        self, as_of: datetime, subscriber_id: Optional[int] = None
    ) -> List[ScheduledOccurrence]:
        """Pending occurrences whose grace period ended at or before as_of."""
        query = ScheduledOccurrenceQueryBuilder.build_pending_expired_query(
            subscriber_id is not None
        )
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, {"as_of": as_of, "subscriber_id": subscriber_id})
                    rows = cur.fetchall()
                    return [self._row_to_occurrence(row) for row in rows]
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                "Failed to find expired pending occurrences",
                operation="find_pending_expired",
            ) from e

    def update_completion(
        self,
        occurrence_id: int,
        completed_at: Optional[datetime],
        status: OccurrenceStatus,
    ) -> Optional[ScheduledOccurrence]:
        """
        Move a pending occurrence to a terminal status.

        Returns:
            The updated occurrence, or None if no pending row with that id exists
            (missing, or already finalized by a concurrent writer)
        """
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        ScheduledOccurrenceQueryBuilder.build_completion_update_query(),
                        {
                            "occurrence_id": occurrence_id,
                            "completed_at": completed_at,
                            "status": OccurrenceStatus(status).value,
                            "updated_at": utc_now(),
                        },
                    )
                    row = cur.fetchone()
                    return self._row_to_occurrence(row) if row else None
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                f"Failed to update completion for occurrence {occurrence_id}",
                operation="update_completion",
            ) from e

    def get_by_id(self, occurrence_id: int) -> Optional[ScheduledOccurrence]:
        fields = ScheduledOccurrenceQueryBuilder.get_base_fields()
        query = f"SELECT {fields} FROM scheduled_occurrences WHERE id = %(occurrence_id)s"
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, {"occurrence_id": occurrence_id})
                    row = cur.fetchone()
                    return self._row_to_occurrence(row) if row else None
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                f"Failed to get occurrence {occurrence_id}",
                operation="get_by_id",
            ) from e

    def find_by_subscriber_and_date(
        self,
        subscriber_id: int,
        scheduled_date: date,
        time_of_day: Optional[TimeOfDay] = None,
    ) -> List[ScheduledOccurrence]:
        """All occurrences for a subscriber on one date, optionally one time of day."""
        return self._find_for_subscriber_date(
            subscriber_id, scheduled_date, time_of_day, pending_only=False
        )

    def find_pending_by_subscriber_and_date(
        self,
        subscriber_id: int,
        scheduled_date: date,
        time_of_day: Optional[TimeOfDay] = None,
    ) -> List[ScheduledOccurrence]:
        return self._find_for_subscriber_date(
            subscriber_id, scheduled_date, time_of_day, pending_only=True
        )

    def _find_for_subscriber_date(
        self,
        subscriber_id: int,
        scheduled_date: date,
        time_of_day: Optional[TimeOfDay],
        pending_only: bool,
    ) -> List[ScheduledOccurrence]:
        where_conditions = [
            "subscriber_id = %(subscriber_id)s",
            "scheduled_date = %(scheduled_date)s",
        ]
        params: Dict[str, Any] = {
            "subscriber_id": subscriber_id,
            "scheduled_date": scheduled_date,
        }
        if time_of_day is not None:
            where_conditions.append("scheduled_time_of_day = %(time_of_day)s")
            params["time_of_day"] = TimeOfDay(time_of_day).value
        if pending_only:
            where_conditions.append("status = 'pending'")

        fields = ScheduledOccurrenceQueryBuilder.get_base_fields()
        query = f"""
            SELECT {fields}
            FROM scheduled_occurrences
            WHERE {" AND ".join(where_conditions)}
            ORDER BY scheduled_time_of_day, id
        """
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall()
                    return [self._row_to_occurrence(row) for row in rows]
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                f"Failed to find occurrences for subscriber {subscriber_id}",
                operation="find_by_subscriber_and_date",
            ) from e

    def get_max_scheduled_date(self, product_id: int) -> Optional[date]:
        """Latest scheduled date materialized for a product, if any."""
        query = """
            SELECT MAX(scheduled_date) AS max_date
            FROM scheduled_occurrences
            WHERE routine_product_id = %(product_id)s
        """
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, {"product_id": product_id})
                    row = cur.fetchone()
                    return row["max_date"] if row else None
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                f"Failed to get latest scheduled date for product {product_id}",
                operation="get_max_scheduled_date",
            ) from e

    def find_finalized_keys(
        self, product_ids: Sequence[int], from_date: date
    ) -> Set[Tuple[int, date, TimeOfDay]]:
        """
        (product, date, time of day) slots on or after from_date that already
        hold a finalized occurrence. Regeneration skips these slots.
        """
        if not product_ids:
            return set()

        query = """
            SELECT routine_product_id, scheduled_date, scheduled_time_of_day
            FROM scheduled_occurrences
            WHERE routine_product_id = ANY(%(product_ids)s)
              AND scheduled_date >= %(from_date)s
              AND status <> 'pending'
        """
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        query,
                        {"product_ids": list(product_ids), "from_date": from_date},
                    )
                    return {
                        (
                            row["routine_product_id"],
                            row["scheduled_date"],
                            TimeOfDay(row["scheduled_time_of_day"]),
                        )
                        for row in cur.fetchall()
                    }
        except (psycopg.Error, KeyError, ValueError) as e:
            raise translate_error(
                e,
                ScheduledOccurrenceOperationError,
                "Failed to find finalized occurrences for products",
                operation="find_finalized_keys",
                details={"product_ids": list(product_ids)},
            ) from e
