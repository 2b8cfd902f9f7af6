"""
Tests for the command line interface.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from yieldfetch import __version__
from yieldfetch.cli.main import app
from yieldfetch.core import orchestrator
from yieldfetch.core.config import AppConfig
from yieldfetch.core.fetch.outcomes import ErrorKind, RetryableError
from yieldfetch.core.orchestrator import RunResult, RunState

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("yieldfetch")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch):
    """Replace the real download with a stub returning a preset result."""
    calls: list[tuple[AppConfig, float | None]] = []
    state = {"result": RunResult(max_attempts=5, state=RunState.SUCCEEDED, attempts=1)}

    async def fake_run_download(config: AppConfig, *, timeout: float | None = None) -> RunResult:
        calls.append((config, timeout))
        return state["result"]

    monkeypatch.setattr(orchestrator, "run_download", fake_run_download)
    return calls, state


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_download_success_exit_code(captured, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    calls, _ = captured

    result = runner.invoke(
        app,
        ["download", str(tmp_path / "out"), "--max-attempts", "3", "--first-year", "2020", "--timeout", "30"],
    )

    assert result.exit_code == 0, result.output
    config, timeout = calls[0]
    assert config.destination_dir == tmp_path / "out"
    assert config.max_attempts == 3
    assert config.source.first_year == 2020
    assert timeout == 30.0
    assert "succeeded" in result.output


def test_download_failure_exit_code(captured, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    _, state = captured
    state["result"] = RunResult(
        max_attempts=3,
        state=RunState.EXHAUSTED,
        attempts=2,
        last_outcome=RetryableError(ErrorKind.HTTP_STATUS, 1990, "HTTP 503", status_code=503),
    )

    result = runner.invoke(app, ["download", str(tmp_path / "out")])

    assert result.exit_code == 1
    assert "exhausted" in result.output


def test_download_rejects_invalid_override(captured, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["download", str(tmp_path / "out"), "--max-attempts", "0"])

    assert result.exit_code == 2
    assert captured[0] == []


def test_download_reads_config_file(captured, tmp_path: Path) -> None:
    config_path = tmp_path / "yf.yaml"
    config_path.write_text(f"destination_dir: {tmp_path / 'from-config'}\nmax_attempts: 4\n", encoding="utf-8")
    calls, _ = captured

    result = runner.invoke(app, ["download", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert calls[0][0].destination_dir == tmp_path / "from-config"
    assert calls[0][0].max_attempts == 4


def test_plan_lists_years(tmp_path: Path) -> None:
    config_path = tmp_path / "yf.yaml"
    config_path.write_text("source:\n  first_year: 2020\n", encoding="utf-8")

    result = runner.invoke(app, ["plan", str(tmp_path / "out"), "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "2020" in result.output
    assert "1990" not in result.output


def test_init_writes_config(tmp_path: Path) -> None:
    path = tmp_path / "yieldfetch.yaml"

    first = runner.invoke(app, ["init", "--path", str(path)])
    second = runner.invoke(app, ["init", "--path", str(path)])
    forced = runner.invoke(app, ["init", "--path", str(path), "--force"])

    assert first.exit_code == 0
    assert path.exists()
    assert second.exit_code == 1
    assert forced.exit_code == 0
