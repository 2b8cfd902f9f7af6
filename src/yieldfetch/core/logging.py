"""
Logging infrastructure for YieldFetch.

Provides:
- Structured JSON logging for file output
- Rich console output for terminal
- Contextual logging with attempt/year context
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson

if TYPE_CHECKING:
    from rich.console import Console


# Extra record attributes copied into JSON log lines
CONTEXT_FIELDS = ("attempt", "max_attempts", "year", "status_code", "url", "path", "kind")


def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


# =============================================================================
# JSON Formatter for File Logging
# =============================================================================


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json_dumps(log_data)


# =============================================================================
# Rich Console Handler
# =============================================================================


class RichConsoleHandler(logging.Handler):
    """Handler that outputs to Rich console with formatting."""

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)

            style = {
                logging.DEBUG: "dim",
                logging.INFO: "default",
                logging.WARNING: "yellow",
                logging.ERROR: "red",
                logging.CRITICAL: "bold red",
            }.get(record.levelno, "default")

            # Attempt/year prefix, e.g. "[2/4 1995]"
            prefix = ""
            if hasattr(record, "attempt"):
                total = getattr(record, "max_attempts", "?")
                prefix = f"[cyan]\\[{record.attempt}/{total}"
                if hasattr(record, "year"):
                    prefix += f" {record.year}"
                prefix += "][/cyan] "

            self.console.print(f"{prefix}[{style}]{message}[/{style}]", highlight=False)

            if record.exc_info:
                self.console.print_exception()

        except Exception:
            self.handleError(record)


# =============================================================================
# Logger Configuration
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Set up logging for YieldFetch.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (optional)
        json_format: Use JSON format for file logs
        rich_console: Use Rich for console output

    Returns:
        Root logger for yieldfetch
    """
    logger = logging.getLogger("yieldfetch")
    logger.setLevel(getattr(logging, level.upper()))

    logger.handlers.clear()

    if rich_console:
        console_handler: logging.Handler = RichConsoleHandler()
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    console_handler.setLevel(getattr(logging, level.upper()))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Capture all levels to file

        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )

        logger.addHandler(file_handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (will be prefixed with 'yieldfetch.')

    Returns:
        Logger instance
    """
    if name:
        if name.startswith("yieldfetch"):
            return logging.getLogger(name)
        return logging.getLogger(f"yieldfetch.{name}")
    return logging.getLogger("yieldfetch")


# =============================================================================
# Contextual Logging Adapter
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that stamps attempt/year context on log records."""

    def __init__(
        self,
        logger: logging.Logger,
        attempt: int | None = None,
        max_attempts: int | None = None,
        year: int | None = None,
    ):
        super().__init__(logger, {})
        self.attempt = attempt
        self.max_attempts = max_attempts
        self.year = year

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})

        if self.attempt is not None:
            extra.setdefault("attempt", self.attempt)
        if self.max_attempts is not None:
            extra.setdefault("max_attempts", self.max_attempts)
        if self.year is not None:
            extra.setdefault("year", self.year)

        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(
        self,
        attempt: int | None = None,
        max_attempts: int | None = None,
        year: int | None = None,
    ) -> "ContextualLogger":
        """Create a new logger with additional context."""
        return ContextualLogger(
            self.logger,
            attempt=attempt if attempt is not None else self.attempt,
            max_attempts=max_attempts if max_attempts is not None else self.max_attempts,
            year=year if year is not None else self.year,
        )


def get_contextual_logger(
    name: str | None = None,
    attempt: int | None = None,
    max_attempts: int | None = None,
    year: int | None = None,
) -> ContextualLogger:
    """Get a contextual logger with attempt/year context.

    Args:
        name: Logger name
        attempt: Attempt number for context
        max_attempts: Attempt ceiling for context
        year: Year being fetched

    Returns:
        ContextualLogger instance
    """
    base_logger = get_logger(name)
    return ContextualLogger(base_logger, attempt=attempt, max_attempts=max_attempts, year=year)
