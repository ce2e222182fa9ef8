# backend/routine_compliance/workers/base_worker.py
"""
Base worker class for the routine compliance worker architecture.

start()/stop() manage the worker lifecycle: they set the running flag and call
initialize()/cleanup(). Scheduling decisions belong to the concrete worker.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TypedDict

from ..enums import LogEmoji, LoggerName
from ..services.logger import get_service_logger


class WorkerResponse(TypedDict):
    """Standardized response format for worker operations."""

    success: bool
    error: Optional[str]
    data: Optional[Dict[str, Any]]


class BaseWorker(ABC):
    """
    Abstract base class for all workers.

    Provides common interface and utilities for worker implementation.
    """

    def __init__(self, name: str, logger_name: LoggerName = LoggerName.SYSTEM):
        """
        Initialize base worker.

        Args:
            name: Worker name for logging and identification
            logger_name: Logger category for this worker's messages
        """
        self.name = name
        self.running = False
        self._logger = get_service_logger(logger_name, LogEmoji.WORKER)

    def start(self) -> None:
        """Start the worker."""
        self.log_info("Starting worker", emoji=LogEmoji.RUNNING)
        self.running = True
        self.initialize()

    def stop(self) -> None:
        """Stop the worker."""
        self.log_info("Stopping worker", emoji=LogEmoji.STOPPED)
        self.running = False
        self.cleanup()

    @abstractmethod
    def initialize(self) -> None:
        """Initialize worker-specific resources."""
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Cleanup worker-specific resources."""
        pass

    def log_info(self, message: str, emoji: Optional[LogEmoji] = None) -> None:
        """Log info message with worker name prefix."""
        self._logger.info(f"[{self.name}] {message}", emoji=emoji)

    def log_error(
        self,
        message: str,
        error: Optional[BaseException] = None,
        emoji: Optional[LogEmoji] = None,
    ) -> None:
        """Log error message with worker name prefix."""
        if error:
            self._logger.error(f"[{self.name}] {message}: {error}", exception=error, emoji=emoji)
        else:
            self._logger.error(f"[{self.name}] {message}", emoji=emoji)

    def log_warning(self, message: str, emoji: Optional[LogEmoji] = None) -> None:
        """Log warning message with worker name prefix."""
        self._logger.warning(f"[{self.name}] {message}", emoji=emoji)

    def log_debug(self, message: str, emoji: Optional[LogEmoji] = None) -> None:
        """Log debug message with worker name prefix."""
        self._logger.debug(f"[{self.name}] {message}", emoji=emoji)

    def get_status(self) -> Dict[str, Any]:
        """
        Get current worker status.

        Returns:
            Dictionary with worker status information
        """
        return {
            "name": self.name,
            "running": self.running,
            "worker_type": self.__class__.__name__,
        }

    def is_healthy(self) -> bool:
        """
        Check if worker is in a healthy state.

        Returns:
            True if worker is healthy, False otherwise
        """
        return self.running

    def create_error_response(
        self, error_message: str, data: Optional[Dict[str, Any]] = None
    ) -> WorkerResponse:
        return WorkerResponse(success=False, error=error_message, data=data)

    def create_success_response(
        self, data: Optional[Dict[str, Any]] = None
    ) -> WorkerResponse:
        return WorkerResponse(success=True, error=None, data=data)
