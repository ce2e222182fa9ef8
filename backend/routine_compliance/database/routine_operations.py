# backend/routine_compliance/database/routine_operations.py
"""
Routine Operations - read access to routines, products and subscriber timezones.

The schedule engine never writes routines or products; it reads them and takes
row locks on them to serialize concurrent regenerations of the same scope.
"""

from typing import Any, Dict, List, Optional

import psycopg

from ..exceptions import InvalidFrequencyError
from ..models.frequency_model import from_storage
from ..models.routine_model import Routine, RoutineProduct
from .exceptions import RoutineOperationError, translate_error


class RoutineQueryBuilder:
    """Centralized query builder for routine operations."""

    @staticmethod
    def get_routine_fields():
        return """
            id, subscriber_id, name, status, start_date, end_date,
            created_at, updated_at
        """

    @staticmethod
    def get_product_fields():
        return """
            id, routine_id, subscriber_id, name, time_of_day,
            frequency_kind, weekday_mask, created_at, updated_at
        """

    @staticmethod
    def build_lock_timeout_query(timeout_ms: int):
        """SET LOCAL cannot take bind parameters; the value is an int."""
        return f"SET LOCAL lock_timeout = '{int(timeout_ms)}ms'"


class RoutineOperations:
    """Sync database operations for routines and routine products."""

    def __init__(self, db) -> None:
        """Initialize with database instance."""
        self.db = db

    def _row_to_routine(self, row: Dict[str, Any]) -> Routine:
        """Convert database row to Routine model."""
        return Routine.model_validate(dict(row))

    def _row_to_product(self, row: Dict[str, Any]) -> RoutineProduct:
        """Convert database row to RoutineProduct model."""
        data = dict(row)
        data["frequency"] = from_storage(
            data.pop("frequency_kind"), data.pop("weekday_mask")
        )
        return RoutineProduct.model_validate(data)

    def get_routine(self, routine_id: int) -> Optional[Routine]:
        fields = RoutineQueryBuilder.get_routine_fields()
        query = f"SELECT {fields} FROM routines WHERE id = %(routine_id)s"
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, {"routine_id": routine_id})
                    row = cur.fetchone()
                    return self._row_to_routine(row) if row else None
        except (psycopg.Error, KeyError, ValueError, InvalidFrequencyError) as e:
            raise translate_error(
                e,
                RoutineOperationError,
                f"Failed to get routine {routine_id}",
                operation="get_routine",
            ) from e

    def get_product(self, product_id: int) -> Optional[RoutineProduct]:
        fields = RoutineQueryBuilder.get_product_fields()
        query = f"SELECT {fields} FROM routine_products WHERE id = %(product_id)s"
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, {"product_id": product_id})
                    row = cur.fetchone()
                    return self._row_to_product(row) if row else None
        except (psycopg.Error, KeyError, ValueError, InvalidFrequencyError) as e:
            raise translate_error(
                e,
                RoutineOperationError,
                f"Failed to get routine product {product_id}",
                operation="get_product",
            ) from e

    def get_products_for_routine(self, routine_id: int) -> List[RoutineProduct]:
        """Products of a routine in insertion order."""
        fields = RoutineQueryBuilder.get_product_fields()
        query = f"""
            SELECT {fields}
            FROM routine_products
            WHERE routine_id = %(routine_id)s
            ORDER BY id
        """
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, {"routine_id": routine_id})
                    rows = cur.fetchall()
                    return [self._row_to_product(row) for row in rows]
        except (psycopg.Error, KeyError, ValueError, InvalidFrequencyError) as e:
            raise translate_error(
                e,
                RoutineOperationError,
                f"Failed to get products for routine {routine_id}",
                operation="get_products_for_routine",
            ) from e

    def get_subscriber_timezone(self, subscriber_id: int) -> Optional[str]:
        query = "SELECT timezone FROM subscribers WHERE id = %(subscriber_id)s"
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, {"subscriber_id": subscriber_id})
                    row = cur.fetchone()
                    return row["timezone"] if row else None
        except (psycopg.Error, KeyError, ValueError, InvalidFrequencyError) as e:
            raise translate_error(
                e,
                RoutineOperationError,
                f"Failed to get timezone for subscriber {subscriber_id}",
                operation="get_subscriber_timezone",
            ) from e

    def list_published_routines(self) -> List[Routine]:
        fields = RoutineQueryBuilder.get_routine_fields()
        query = f"""
            SELECT {fields}
            FROM routines
            WHERE status = 'published'
            ORDER BY id
        """
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query)
                    rows = cur.fetchall()
                    return [self._row_to_routine(row) for row in rows]
        except (psycopg.Error, KeyError, ValueError, InvalidFrequencyError) as e:
            raise translate_error(
                e,
                RoutineOperationError,
                "Failed to list published routines",
                operation="list_published_routines",
            ) from e

    def lock_routine(self, routine_id: int, timeout_ms: int) -> Optional[Routine]:
        """
        Lock a routine row for the rest of the transaction and return it.

        Raises:
            LockConflictError: If the lock is not granted within timeout_ms
        """
        fields = RoutineQueryBuilder.get_routine_fields()
        query = f"SELECT {fields} FROM routines WHERE id = %(routine_id)s FOR UPDATE"
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(RoutineQueryBuilder.build_lock_timeout_query(timeout_ms))
                    cur.execute(query, {"routine_id": routine_id})
                    row = cur.fetchone()
                    return self._row_to_routine(row) if row else None
        except (psycopg.Error, KeyError, ValueError, InvalidFrequencyError) as e:
            raise translate_error(
                e,
                RoutineOperationError,
                f"Failed to lock routine {routine_id}",
                operation="lock_routine",
            ) from e

    def lock_product(self, product_id: int, timeout_ms: int) -> Optional[RoutineProduct]:
        """
        Lock a routine product row for the rest of the transaction and return it.

        Raises:
            LockConflictError: If the lock is not granted within timeout_ms
        """
        fields = RoutineQueryBuilder.get_product_fields()
        query = (
            f"SELECT {fields} FROM routine_products "
            f"WHERE id = %(product_id)s FOR UPDATE"
        )
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(RoutineQueryBuilder.build_lock_timeout_query(timeout_ms))
                    cur.execute(query, {"product_id": product_id})
                    row = cur.fetchone()
                    return self._row_to_product(row) if row else None
        except (psycopg.Error, KeyError, ValueError, InvalidFrequencyError) as e:
            raise translate_error(
                e,
                RoutineOperationError,
                f"Failed to lock routine product {product_id}",
                operation="lock_product",
            ) from e
