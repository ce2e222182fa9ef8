# backend/routine_compliance/constants.py
"""
Global Constants for the routine compliance engine.

Centralized location for all application constants to avoid hardcoded values
throughout the codebase.
"""

from datetime import time

from .enums import ScheduleChangeField, TimeOfDay

# =============================================================================
# DEADLINES
# =============================================================================

DEFAULT_DEADLINE_ANCHORS = {
    TimeOfDay.MORNING: time(11, 0),
    TimeOfDay.EVENING: time(22, 0),
}

# Grace period ends at local end-of-day
GRACE_PERIOD_END_OF_DAY = time(23, 59, 59, 999000)

# =============================================================================
# WINDOW / FREQUENCY
# =============================================================================

DEFAULT_SCHEDULE_WINDOW_DAYS = 60
MAX_SCHEDULE_WINDOW_DAYS = 366

WEEKDAY_MASK_ALL = 0b1111111

# Labels used by the legacy frequency/days product representation
LEGACY_FREQUENCY_DAILY = "daily"
LEGACY_FREQUENCY_LABELS = {
    "daily",
    "2x per week",
    "3x per week",
    "specific_days",
}

# =============================================================================
# REGENERATION / LOCKING
# =============================================================================

# Caller-side field names accepted for product changes
SCHEDULE_CHANGE_FIELD_ALIASES = {
    "timeOfDay": ScheduleChangeField.TIME_OF_DAY,
    "days": ScheduleChangeField.FREQUENCY,
}

DEFAULT_REGENERATION_LOCK_TIMEOUT_MS = 5000
DEFAULT_REGENERATION_MAX_RETRIES = 1

# =============================================================================
# WORKER
# =============================================================================

DEFAULT_SWEEP_INTERVAL_MINUTES = 15
DEFAULT_WINDOW_EXTENSION_HOUR = 2
SWEEP_JOB_ID = "expiry_sweep"
WINDOW_EXTENSION_JOB_ID = "window_extension"
SCHEDULER_MAX_INSTANCES = 1

# =============================================================================
# LOGGING
# =============================================================================

LOG_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[logger_name]}</cyan> - <level>{message}</level>"
)
LOG_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[logger_name]} - {message}"
DEFAULT_LOG_ROTATION = "10 MB"
DEFAULT_LOG_RETENTION = "14 days"
