# backend/routine_compliance/services/logger/logger_service.py
"""
Centralized Logger Service.

Thin layer over loguru that gives every service a pre-configured logger with
a fixed logger_name and an emoji prefix. Sinks are configured once through
configure_logging(); the database layer never logs, it raises.
"""

import sys
from typing import Any, Dict, Optional

from loguru import logger

from ...config import Settings
from ...constants import LOG_CONSOLE_FORMAT, LOG_FILE_FORMAT
from ...enums import LogEmoji, LoggerName, LogLevel

_configured = False


def configure_logging(config: Settings, *, force: bool = False) -> None:
    """
    Install the console sink and, when log_file is set, a rotating file sink.

    Safe to call more than once; later calls are ignored unless force=True.
    """
    global _configured
    if _configured and not force:
        return

    logger.remove()
    logger.configure(extra={"logger_name": LoggerName.SYSTEM.value})
    logger.add(
        sys.stderr,
        level=config.log_level.value,
        format=LOG_CONSOLE_FORMAT,
        colorize=True,
    )
    if config.log_file:
        logger.add(
            config.log_file,
            level=config.log_level.value,
            format=LOG_FILE_FORMAT,
            rotation=config.log_rotation,
            retention=config.log_retention,
            enqueue=True,
        )
    _configured = True


def _format_message(
    emoji: LogEmoji, message: str, context: Optional[Dict[str, Any]]
) -> str:
    text = f"{emoji.value} {message}"
    if context:
        details = ", ".join(f"{key}={value}" for key, value in context.items())
        text = f"{text} ({details})"
    return text


def get_service_logger(
    logger_name: LoggerName,
    default_emoji: Optional[LogEmoji] = None,
):
    """
    Factory function to create a pre-configured logger for a specific service.

    Emoji priority system (highest to lowest):
    1. Direct: Emoji passed directly to log method call
    2. Instance-set: Default emoji set when creating the service logger
    3. Fallback: Default emoji based on log level (ERROR, WARNING, INFO, DEBUG)

    Args:
        logger_name: The logger name enum to use for all calls
        default_emoji: Instance-level default emoji that overrides level-based fallbacks

    Returns:
        ServiceLogger instance with error, warning, info, debug methods

    Example:
        from ..services.logger import get_service_logger
        from ..enums import LogEmoji, LoggerName

        logger = get_service_logger(LoggerName.COMPLIANCE_SERVICE)
        logger.error("Something went wrong")  # Uses LogEmoji.ERROR (fallback)

        sweep_logger = get_service_logger(
            LoggerName.COMPLIANCE_WORKER, default_emoji=LogEmoji.CLEANUP
        )
        sweep_logger.info("Sweep finished")  # Uses LogEmoji.CLEANUP (instance-set)
    """

    bound = logger.bind(logger_name=logger_name.value)

    def _resolve_emoji(
        method_emoji: Optional[LogEmoji], fallback_emoji: LogEmoji
    ) -> LogEmoji:
        if method_emoji is not None:
            return method_emoji
        if default_emoji is not None:
            return default_emoji
        return fallback_emoji

    class ServiceLogger:
        name = logger_name

        @staticmethod
        def error(
            message: str,
            exception: Optional[BaseException] = None,
            error_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
        ) -> None:
            """Log an error with emoji priority system."""
            text = _format_message(
                _resolve_emoji(emoji, LogEmoji.ERROR), message, error_context
            )
            if exception is not None:
                bound.opt(exception=exception).log(LogLevel.ERROR.value, text)
            else:
                bound.log(LogLevel.ERROR.value, text)

        @staticmethod
        def warning(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
        ) -> None:
            """Log a warning with emoji priority system."""
            bound.log(
                LogLevel.WARNING.value,
                _format_message(
                    _resolve_emoji(emoji, LogEmoji.WARNING), message, extra_context
                ),
            )

        @staticmethod
        def info(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
        ) -> None:
            """Log an info message with emoji priority system."""
            bound.log(
                LogLevel.INFO.value,
                _format_message(
                    _resolve_emoji(emoji, LogEmoji.INFO), message, extra_context
                ),
            )

        @staticmethod
        def debug(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
        ) -> None:
            """Log a debug message with emoji priority system."""
            bound.log(
                LogLevel.DEBUG.value,
                _format_message(
                    _resolve_emoji(emoji, LogEmoji.DEBUG), message, extra_context
                ),
            )

    return ServiceLogger()
