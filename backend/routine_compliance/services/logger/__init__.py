"""
Centralized Logger Service Module.

Usage:
    from routine_compliance.services.logger import get_service_logger
    from routine_compliance.enums import LogEmoji, LoggerName

    logger = get_service_logger(LoggerName.REGENERATION_SERVICE, LogEmoji.CALENDAR)
    logger.info("Regenerated schedule", extra_context={"product_id": 12})
"""

# Re-export commonly used enums for convenience
from ...enums import LogEmoji, LoggerName, LogLevel
from .logger_service import configure_logging, get_service_logger

__all__ = [
    "configure_logging",
    "get_service_logger",
    # Enums
    "LogLevel",
    "LoggerName",
    "LogEmoji",
]
