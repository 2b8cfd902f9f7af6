"""Configuration loading and validation."""

from .models import (
    # Enums
    RetryPolicy,
    # Config models
    AppConfig,
    ThrottleConfig,
    SourceConfig,
    HttpConfig,
    LoggingConfig,
)
from .loader import ConfigError, load_app_config, write_default_config

__all__ = [
    # Enums
    "RetryPolicy",
    # Config models
    "AppConfig",
    "ThrottleConfig",
    "SourceConfig",
    "HttpConfig",
    "LoggingConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "write_default_config",
]
