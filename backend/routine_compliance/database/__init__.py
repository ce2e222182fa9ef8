"""
Database package for the routine compliance engine.

Usage:
    from routine_compliance.database import sync_db, PostgresScheduleStore
    from routine_compliance.services.compliance_service import ComplianceService

    sync_db.initialize()
    store = PostgresScheduleStore(sync_db)
    compliance = ComplianceService(store)
"""

from .core import SyncDatabase
from .exceptions import (
    DatabaseOperationError,
    LockConflictError,
    RoutineOperationError,
    ScheduledOccurrenceOperationError,
)
from .occurrence_operations import ScheduledOccurrenceOperations
from .routine_operations import RoutineOperations
from .store import BoundScheduleStore, PostgresScheduleStore, ScheduleUnitOfWork

# Shared database instance; call sync_db.initialize() at process startup
sync_db = SyncDatabase()

__all__ = [
    "SyncDatabase",
    "sync_db",
    "PostgresScheduleStore",
    "BoundScheduleStore",
    "ScheduleUnitOfWork",
    "ScheduledOccurrenceOperations",
    "RoutineOperations",
    "DatabaseOperationError",
    "ScheduledOccurrenceOperationError",
    "RoutineOperationError",
    "LockConflictError",
]
