# backend/tests/database/conftest.py
"""
Shared fixtures and configuration for database operations tests.

Provides common mocking utilities and row factories for database tests.
"""

import pytest
from unittest.mock import Mock
from datetime import date, datetime, timezone
from typing import Dict, Any


@pytest.fixture
def mock_sync_db():
    """
    Mock sync database connection for testing sync database operations.

    Returns:
        tuple: (db_mock, connection_mock, cursor_mock) for easy access in tests
    """
    db = Mock()
    conn = Mock()
    cursor = Mock()

    # Setup sync context managers
    db.get_connection.return_value.__enter__ = Mock(return_value=conn)
    db.get_connection.return_value.__exit__ = Mock(return_value=None)
    conn.cursor.return_value.__enter__ = Mock(return_value=cursor)
    conn.cursor.return_value.__exit__ = Mock(return_value=None)

    return db, conn, cursor


# Test data factories
class RowFactory:
    """Dict rows shaped like the dict_row results of the schedule tables."""

    @staticmethod
    def occurrence_row(**overrides) -> Dict[str, Any]:
        defaults = {
            "id": 1,
            "routine_product_id": 100,
            "subscriber_id": 1,
            "scheduled_date": date(2025, 6, 11),
            "scheduled_time_of_day": "morning",
            "on_time_deadline": datetime(2025, 6, 11, 15, 0, tzinfo=timezone.utc),
            "grace_period_end": datetime(
                2025, 6, 12, 3, 59, 59, 999000, tzinfo=timezone.utc
            ),
            "completed_at": None,
            "status": "pending",
            "created_at": datetime(2025, 6, 1, tzinfo=timezone.utc),
            "updated_at": datetime(2025, 6, 1, tzinfo=timezone.utc),
        }
        defaults.update(overrides)
        return defaults

    @staticmethod
    def routine_row(**overrides) -> Dict[str, Any]:
        defaults = {
            "id": 1,
            "subscriber_id": 1,
            "name": "Morning glow",
            "status": "published",
            "start_date": date(2025, 6, 1),
            "end_date": None,
            "created_at": datetime(2025, 5, 30, tzinfo=timezone.utc),
            "updated_at": datetime(2025, 5, 30, tzinfo=timezone.utc),
        }
        defaults.update(overrides)
        return defaults

    @staticmethod
    def product_row(**overrides) -> Dict[str, Any]:
        defaults = {
            "id": 100,
            "routine_id": 1,
            "subscriber_id": 1,
            "name": "Cleanser",
            "time_of_day": "morning",
            "frequency_kind": "weekdays",
            "weekday_mask": 0b0101010,
            "created_at": datetime(2025, 5, 30, tzinfo=timezone.utc),
            "updated_at": datetime(2025, 5, 30, tzinfo=timezone.utc),
        }
        defaults.update(overrides)
        return defaults


@pytest.fixture
def rows():
    """Provide the row factory to tests."""
    return RowFactory

