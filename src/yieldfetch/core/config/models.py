"""
Pydantic configuration models for YieldFetch.

These models provide type-safe configuration with validation for:
- Download destination and retry settings
- Request throttling
- Source endpoint and HTTP client settings
- Logging
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..fetch.years import DEFAULT_BASE_URL, DEFAULT_DATASET, FIRST_YEAR


# =============================================================================
# Enums
# =============================================================================


class RetryPolicy(str, Enum):
    """Where a new attempt starts after a failed one."""

    RESTART = "restart"  # From the first year of the range
    RESUME = "resume"  # From the year that failed


# =============================================================================
# Throttle Configuration
# =============================================================================


class ThrottleConfig(BaseModel):
    """Outbound request throttle settings."""

    capacity: int = Field(
        default=1,
        ge=1,
        le=100,
        description="Permits the bucket can hold",
    )
    refill_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Seconds to regenerate one permit",
    )


# =============================================================================
# Source / HTTP Configuration
# =============================================================================


class SourceConfig(BaseModel):
    """Publisher endpoint settings."""

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Yield curve XML endpoint",
    )
    dataset: str = Field(
        default=DEFAULT_DATASET,
        description="Value of the 'data' query parameter",
    )
    first_year: int = Field(
        default=FIRST_YEAR,
        ge=FIRST_YEAR,
        description="First year published by the endpoint",
    )

    @field_validator("first_year")
    @classmethod
    def first_year_not_in_future(cls, v: int) -> int:
        """Ensure the range is never empty."""
        if v > date.today().year:
            raise ValueError("first_year cannot be in the future")
        return v


class HttpConfig(BaseModel):
    """HTTP client settings."""

    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Per-request timeout in seconds",
    )
    user_agent: str | None = Field(
        default=None,
        description="User agent override",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def level_is_known(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from yieldfetch.yaml.
    """

    destination_dir: Path = Field(
        default=Path("data/yieldcurves"),
        description="Directory receiving yieldcurverates_<year>.xml files",
    )
    staging_dir: Path | None = Field(
        default=None,
        description="Directory for temporary downloads (default: system temp)",
    )

    # Retry behaviour
    max_attempts: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Attempt ceiling; at most max_attempts - 1 attempts run",
    )
    retry_policy: RetryPolicy = Field(
        default=RetryPolicy.RESTART,
        description="Where a new attempt starts after a failure",
    )
    retry_backoff_seconds: float = Field(
        default=0.0,
        ge=0,
        le=300,
        description="Base exponential backoff between attempts (0 = none)",
    )
    filesystem_errors_fatal: bool = Field(
        default=True,
        description="Stop the run on filesystem errors instead of retrying",
    )

    # Components
    throttle: ThrottleConfig = Field(default_factory=ThrottleConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.destination_dir.mkdir(parents=True, exist_ok=True)
        if self.staging_dir:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
        if self.logging.file:
            self.logging.file.parent.mkdir(parents=True, exist_ok=True)

    def with_overrides(self, **overrides: Any) -> "AppConfig":
        """Return a re-validated copy with the non-None overrides applied.

        Nested fields use a double underscore, e.g. ``source__first_year``.

        Raises:
            ValidationError: If an override is invalid
        """
        data = self.model_dump()
        for key, value in overrides.items():
            if value is None:
                continue
            section, _, name = key.partition("__")
            if name:
                data[section][name] = value
            else:
                data[key] = value
        return AppConfig.model_validate(data)
