# backend/routine_compliance/enums.py
"""
Application Enums - Centralized enum definitions.

This module contains all enum definitions so that constants.py, the models
and the service layer can import them without creating circular dependencies.
"""

from enum import Enum


# =============================================================================
# ROUTINE SYSTEMS
# =============================================================================


class TimeOfDay(str, Enum):
    """When a routine step is performed. Each value has its own on-time anchor."""

    MORNING = "morning"
    EVENING = "evening"


class RoutineStatus(str, Enum):
    """Routine lifecycle. Only published routines have scheduled occurrences."""

    DRAFT = "draft"
    PUBLISHED = "published"


class FrequencyKind(str, Enum):
    """Discriminator for the Frequency tagged union."""

    DAILY = "daily"
    WEEKDAYS = "weekdays"


class Weekday(int, Enum):
    """Weekday index used by weekday masks. Sunday is bit 0."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @property
    def bit(self) -> int:
        """Mask bit for this weekday."""
        return 1 << self.value

    @classmethod
    def from_name(cls, name: str) -> "Weekday":
        """Resolve a day name such as "Monday" or "mon" (case-insensitive)."""
        key = name.strip().upper()
        for day in cls:
            if day.name == key or day.name[:3] == key:
                return day
        raise ValueError(f"Unknown weekday name: {name!r}")


# =============================================================================
# COMPLIANCE SYSTEMS
# =============================================================================


class OccurrenceStatus(str, Enum):
    """Completion state of a scheduled occurrence. Everything but PENDING is terminal."""

    PENDING = "pending"
    ON_TIME = "on-time"
    LATE = "late"
    MISSED = "missed"

    @property
    def is_terminal(self) -> bool:
        return self is not OccurrenceStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self in (OccurrenceStatus.ON_TIME, OccurrenceStatus.LATE)


class ScheduleChangeField(str, Enum):
    """Product fields whose change requires occurrence regeneration."""

    FREQUENCY = "frequency"
    TIME_OF_DAY = "time_of_day"


class RegenerationScope(str, Enum):
    """What a regeneration run covers, used for logging and results."""

    PRODUCT_CREATED = "product_created"
    PRODUCT_UPDATED = "product_updated"
    PRODUCT_DELETED = "product_deleted"
    ROUTINE_PUBLISHED = "routine_published"
    ROUTINE_UNPUBLISHED = "routine_unpublished"
    ROUTINE_DATES_CHANGED = "routine_dates_changed"
    WINDOW_EXTENSION = "window_extension"


# =============================================================================
# LOGGING SYSTEMS
# =============================================================================


class LogLevel(str, Enum):
    """Log level constants for centralized logging system."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogEmoji(str, Enum):
    """Type-safe emoji constants for log messages."""

    # Status emojis
    SUCCESS = "✅"
    COMPLETED = "✅"
    PENDING = "⏳"
    FAILED = "❌"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "ℹ️"
    DEBUG = "🐞"
    CANCELED = "🚫"

    # Work emojis
    PROCESSING = "🔄"
    RUNNING = "▶️"
    STOPPED = "⏹️"

    # Domain emojis
    CALENDAR = "📅"
    CLOCK = "⏰"
    ROUTINE = "🧴"
    LOCK = "🔒"
    CLEANUP = "🧹"
    DATABASE = "🗄️"
    WORKER = "👷"


class LoggerName(str, Enum):
    """Logger name constants for categorizing log entries."""

    # Scheduling loggers
    WINDOW_GENERATOR = "window_generator"

    # Service loggers
    COMPLIANCE_SERVICE = "compliance_service"
    REGENERATION_SERVICE = "regeneration_service"

    # Infrastructure loggers
    DATABASE = "database"
    COMPLIANCE_WORKER = "compliance_worker"
    SYSTEM = "system"
