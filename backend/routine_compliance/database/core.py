# backend/routine_compliance/database/core.py

"""
Base database class for composition-based architecture.

Provides connection pool management. Operations classes receive a SyncDatabase
(or an already-open connection through the schedule store) and never manage
the pool themselves.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from ..config import Settings, settings
from ..enums import LogEmoji, LoggerName
from ..services.logger import get_service_logger
from ..utils.time_utils import utc_now

logger = get_service_logger(LoggerName.DATABASE, LogEmoji.DATABASE)


class SyncDatabaseCore:
    """
    Core sync database functionality for composition-based architecture.

    This class provides connection management without mixin inheritance.
    """

    def __init__(self, config: Optional[Settings] = None) -> None:
        """Initialize the SyncDatabaseCore instance with empty connection pool."""
        self._config = config or settings
        self._pool: Optional[ConnectionPool] = None
        self._connection_attempts = 0
        self._failed_connections = 0
        self._last_health_check = None
        self._pool_created_at = None

    def initialize(self) -> None:
        """
        Initialize the sync connection pool.

        Creates and opens a ConnectionPool with configuration from settings.
        This method must be called before using any database operations.

        Raises:
            psycopg.Error: If connection pool initialization fails
        """
        try:
            self._pool = ConnectionPool(
                self._config.database_url,
                min_size=self._config.db_pool_min_size,
                max_size=max(
                    self._config.db_pool_min_size, self._config.db_pool_max_size
                ),
                timeout=self._config.db_pool_timeout,
                kwargs={
                    "row_factory": dict_row,
                    "connect_timeout": 15,
                },
                open=False,
            )
            self._pool.open()
            self._pool_created_at = utc_now()
            self._connection_attempts = 0
            self._failed_connections = 0
            logger.info("Database pool initialized")
        except (psycopg.Error, OSError) as e:
            self._failed_connections += 1
            logger.error("Failed to initialize database pool", exception=e)
            raise

    def close(self) -> None:
        """
        Close the connection pool and cleanup resources.
        """
        if self._pool:
            self._pool.close()
            self._pool = None

    def check_pool_health(self) -> bool:
        """
        Check if the database connection pool is healthy.

        Returns:
            True if pool is healthy, False otherwise
        """
        if not self._pool:
            return False

        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
                    cur.fetchone()

            self._last_health_check = utc_now()
            return True
        except psycopg.Error as e:
            self._failed_connections += 1
            logger.warning(f"Database health check failed: {e}")
            return False

    def get_pool_stats(self) -> Dict[str, Any]:
        """
        Get connection pool statistics.

        Returns:
            Dictionary with pool statistics
        """
        if not self._pool:
            return {"pool_initialized": False}

        return {
            "pool_initialized": True,
            "pool_created_at": self._pool_created_at,
            "connection_attempts": self._connection_attempts,
            "failed_connections": self._failed_connections,
            "last_health_check": self._last_health_check,
            "pool_size": getattr(self._pool, "size", 0),
            "pool_available": getattr(self._pool, "available", 0),
        }

    @contextmanager
    def get_connection(self) -> Generator[Any, None, None]:
        """
        Get a sync database connection inside a transaction.

        The transaction commits when the block exits normally and rolls back
        when it raises.

        Yields:
            Connection: A sync database connection with dict_row factory

        Raises:
            RuntimeError: If the pool has not been initialized

        Usage:
            with db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT * FROM routines")
                    data = cur.fetchall()
        """
        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        self._connection_attempts += 1
        with self._pool.connection() as conn:
            with conn.transaction():
                yield conn


# Composition-based database class for services and workers
SyncDatabase = SyncDatabaseCore
