"""
Tests for logging setup and formatters.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from rich.console import Console

from yieldfetch.core.logging import (
    JSONFormatter,
    RichConsoleHandler,
    get_contextual_logger,
    get_logger,
    setup_logging,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("yieldfetch.test", logging.ERROR, __file__, 1, "status %d", (500,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_context_fields() -> None:
    line = JSONFormatter().format(_record(attempt=2, year=1995, status_code=500))
    data = json.loads(line)

    assert data["message"] == "status 500"
    assert data["level"] == "ERROR"
    assert data["attempt"] == 2
    assert data["year"] == 1995
    assert data["status_code"] == 500
    assert "url" not in data


def test_rich_handler_prefixes_attempt_and_year() -> None:
    console = Console(record=True, width=200)
    handler = RichConsoleHandler(console=console)
    handler.setFormatter(logging.Formatter("%(message)s"))

    handler.emit(_record(attempt=1, max_attempts=5, year=1990))

    assert "[1/5 1990] status 500" in console.export_text()


def test_get_logger_prefixes_names() -> None:
    assert get_logger().name == "yieldfetch"
    assert get_logger("cli").name == "yieldfetch.cli"
    assert get_logger("yieldfetch.core.fetch").name == "yieldfetch.core.fetch"


def test_contextual_logger_stamps_records(caplog) -> None:
    log = get_contextual_logger("test", attempt=3, max_attempts=5).with_context(year=2001)

    with caplog.at_level(logging.INFO, logger="yieldfetch"):
        log.info("hello", extra={"status_code": 404})

    record = caplog.records[-1]
    assert (record.attempt, record.max_attempts, record.year, record.status_code) == (3, 5, 2001, 404)


def test_setup_logging_writes_json_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "yieldfetch.log"
    logger = setup_logging(level="DEBUG", log_file=log_file, rich_console=False)
    try:
        get_logger("test").info("written", extra={"year": 1999})
        for handler in logger.handlers:
            handler.flush()

        data = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
        assert data["message"] == "written"
        assert data["year"] == 1999
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
