# backend/routine_compliance/database/exceptions.py
"""
Database Operation Exceptions - Clean Error Handling Pattern

Architecture Pattern:
- Database operations raise specific exceptions (no logging)
- Service layer catches exceptions and handles logging
- Clean separation of concerns between data and business logic layers

Usage Examples:
    # In database operations file:
    from .exceptions import ScheduledOccurrenceOperationError

    try:
        cur.execute(query, params)
        return results
    except (psycopg.Error, KeyError, ValueError) as e:
        raise ScheduledOccurrenceOperationError(
            "Failed to delete occurrences",
            operation="delete_by_product",
        ) from e

Lock conflicts (lock timeout, serialization failure, deadlock) are raised as
LockConflictError so the regeneration coordinator can retry them; everything
else propagates to the caller unchanged.
"""

from typing import Any, Dict, Optional

import psycopg
from psycopg import errors as pg_errors

LOCK_CONFLICT_ERRORS = (
    pg_errors.LockNotAvailable,
    pg_errors.SerializationFailure,
    pg_errors.DeadlockDetected,
)


class DatabaseOperationError(Exception):
    """
    Base exception for all database operation failures.

    Provides a clean interface for database errors without requiring
    logging dependencies in the database layer.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}

    def __str__(self):
        if self.operation:
            return f"{self.operation}: {super().__str__()}"
        return super().__str__()


class ScheduledOccurrenceOperationError(DatabaseOperationError):
    """Scheduled occurrence database operation errors."""

    pass


class RoutineOperationError(DatabaseOperationError):
    """Routine and routine product database operation errors."""

    pass


class LockConflictError(DatabaseOperationError):
    """A row lock could not be acquired, or the transaction lost a serialization race."""

    pass


def translate_error(
    error: Exception,
    error_class: type,
    message: str,
    operation: str,
    details: Optional[Dict[str, Any]] = None,
) -> DatabaseOperationError:
    """Map a driver error to LockConflictError or the table's operation error."""
    if isinstance(error, LOCK_CONFLICT_ERRORS):
        return LockConflictError(
            f"{message} (lock conflict)", operation=operation, details=details
        )
    if isinstance(error, psycopg.Error) and error.sqlstate:
        details = {**(details or {}), "sqlstate": error.sqlstate}
    return error_class(message, operation=operation, details=details)
