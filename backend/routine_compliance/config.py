# backend/routine_compliance/config.py
from datetime import time
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_DEADLINE_ANCHORS,
    DEFAULT_LOG_RETENTION,
    DEFAULT_LOG_ROTATION,
    DEFAULT_REGENERATION_LOCK_TIMEOUT_MS,
    DEFAULT_REGENERATION_MAX_RETRIES,
    DEFAULT_SCHEDULE_WINDOW_DAYS,
    DEFAULT_SWEEP_INTERVAL_MINUTES,
    DEFAULT_WINDOW_EXTENSION_HOUR,
    MAX_SCHEDULE_WINDOW_DAYS,
)
from .enums import LogLevel, TimeOfDay
from .models.occurrence_model import DeadlineAnchors


class Settings(BaseSettings):
    environment: str = "development"

    # Database
    database_url: str = Field(
        default="postgresql://localhost:5432/routine_compliance",
        description="PostgreSQL connection string",
    )
    db_pool_min_size: int = Field(
        default=2, ge=1, le=50, description="Minimum pooled connections"
    )
    db_pool_max_size: int = Field(
        default=10, ge=1, le=100, description="Maximum pooled connections"
    )
    db_pool_timeout: int = Field(
        default=30,
        ge=5,
        le=300,
        description="Seconds to wait for a pooled connection",
    )

    # Schedule generation
    schedule_window_days: int = Field(
        default=DEFAULT_SCHEDULE_WINDOW_DAYS,
        ge=1,
        le=MAX_SCHEDULE_WINDOW_DAYS,
        description="Rolling horizon, in days, of materialized occurrences",
    )
    morning_deadline: time = Field(
        default=DEFAULT_DEADLINE_ANCHORS[TimeOfDay.MORNING],
        description="Local on-time cutoff for morning steps",
    )
    evening_deadline: time = Field(
        default=DEFAULT_DEADLINE_ANCHORS[TimeOfDay.EVENING],
        description="Local on-time cutoff for evening steps",
    )

    # Regeneration
    regeneration_lock_timeout_ms: int = Field(
        default=DEFAULT_REGENERATION_LOCK_TIMEOUT_MS,
        ge=0,
        le=60000,
        description="How long a regeneration waits for row locks (0 = forever)",
    )
    regeneration_max_retries: int = Field(
        default=DEFAULT_REGENERATION_MAX_RETRIES,
        ge=0,
        le=5,
        description="Automatic retries after a lock conflict",
    )

    # Worker
    sweep_interval_minutes: int = Field(
        default=DEFAULT_SWEEP_INTERVAL_MINUTES,
        ge=1,
        le=1440,
        description="Interval between expiry sweeps",
    )
    window_extension_hour: int = Field(
        default=DEFAULT_WINDOW_EXTENSION_HOUR,
        ge=0,
        le=23,
        description="UTC hour at which rolling windows are topped up",
    )

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path (optional)"
    )
    log_rotation: str = Field(
        default=DEFAULT_LOG_ROTATION, description="Log file rotation policy"
    )
    log_retention: str = Field(
        default=DEFAULT_LOG_RETENTION, description="Log file retention policy"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v) -> LogLevel:
        """Validate log level is one of the allowed values"""
        if isinstance(v, LogLevel):
            return v
        allowed_levels = LogLevel.__members__.keys()
        v_upper = str(v).upper()
        if v_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(allowed_levels)}"
            )
        return LogLevel[v_upper]

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values"""
        allowed_envs = ["development", "staging", "production", "test"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {', '.join(allowed_envs)}"
            )
        return v_lower

    @property
    def deadline_anchors(self) -> DeadlineAnchors:
        """On-time anchor per time of day."""
        return DeadlineAnchors(
            morning=self.morning_deadline, evening=self.evening_deadline
        )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


# Global settings instance
settings = Settings()
