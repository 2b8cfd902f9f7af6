"""
Tests for configuration models and the YAML loader.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from yieldfetch.core.config import (
    AppConfig,
    ConfigError,
    RetryPolicy,
    load_app_config,
    write_default_config,
)


def test_defaults_match_publisher_settings() -> None:
    config = AppConfig()

    assert config.max_attempts == 5
    assert config.retry_policy == RetryPolicy.RESTART
    assert config.throttle.capacity == 1
    assert config.throttle.refill_seconds == 1.0
    assert config.source.first_year == 1990
    assert config.filesystem_errors_fatal is True


def test_missing_default_file_returns_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert load_app_config() == AppConfig()


def test_missing_explicit_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as exc_info:
        load_app_config(tmp_path / "nope.yaml")

    assert exc_info.value.path == tmp_path / "nope.yaml"


def test_yaml_with_env_expansion(tmp_path: Path) -> None:
    path = tmp_path / "yieldfetch.yaml"
    path.write_text(
        "destination_dir: ${YF_DEST:-fallback}\n"
        "max_attempts: 3\n"
        "retry_policy: resume\n"
        "throttle:\n"
        "  refill_seconds: 2.5\n"
        "logging:\n"
        "  level: debug\n",
        encoding="utf-8",
    )

    with patch.dict(os.environ, {"YF_DEST": str(tmp_path / "curves")}):
        config = load_app_config(path)

    assert config.destination_dir == tmp_path / "curves"
    assert config.max_attempts == 3
    assert config.retry_policy == RetryPolicy.RESUME
    assert config.throttle.refill_seconds == 2.5
    assert config.logging.level == "DEBUG"


def test_env_default_used_when_unset(tmp_path: Path) -> None:
    path = tmp_path / "c.yaml"
    path.write_text("destination_dir: ${YF_UNSET_VAR_FOR_TEST:-out/curves}\n", encoding="utf-8")

    with patch.dict(os.environ, {}, clear=False):
        os.environ.pop("YF_UNSET_VAR_FOR_TEST", None)
        config = load_app_config(path)

    assert config.destination_dir == Path("out/curves")


@pytest.mark.parametrize(
    "content",
    [
        "max_attempts: 0\n",
        "throttle:\n  refill_seconds: 0\n",
        "retry_policy: sometimes\n",
        "logging:\n  level: loud\n",
    ],
)
def test_invalid_values_raise_config_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError) as exc_info:
        load_app_config(path)

    assert exc_info.value.details


def test_malformed_yaml(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("throttle: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_app_config(path)


def test_non_mapping_yaml(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_app_config(path)


def test_with_overrides_handles_nested_fields() -> None:
    config = AppConfig().with_overrides(
        max_attempts=9,
        source__first_year=2010,
        logging__level="warning",
        destination_dir=None,
    )

    assert config.max_attempts == 9
    assert config.source.first_year == 2010
    assert config.logging.level == "WARNING"
    assert config.destination_dir == AppConfig().destination_dir


def test_with_overrides_validates() -> None:
    with pytest.raises(ValidationError):
        AppConfig().with_overrides(max_attempts=0)


def test_default_config_file_round_trips(tmp_path: Path) -> None:
    path = write_default_config(tmp_path / "yieldfetch.yaml")

    config = load_app_config(path)

    assert config.max_attempts == 5
    assert config.logging.file == Path("logs/yieldfetch.log")

    with pytest.raises(ConfigError):
        write_default_config(path)
    write_default_config(path, force=True)


def test_ensure_directories(tmp_path: Path) -> None:
    config = AppConfig(
        destination_dir=tmp_path / "dest",
        staging_dir=tmp_path / "stage",
        logging={"file": tmp_path / "logs" / "yf.log"},
    )

    config.ensure_directories()

    assert (tmp_path / "dest").is_dir()
    assert (tmp_path / "stage").is_dir()
    assert (tmp_path / "logs").is_dir()


def test_source_defaults_come_from_year_module() -> None:
    from yieldfetch.core.fetch.years import DEFAULT_BASE_URL, DEFAULT_DATASET, FIRST_YEAR

    source = AppConfig().source

    assert source.base_url == DEFAULT_BASE_URL
    assert source.dataset == DEFAULT_DATASET
    assert source.first_year == FIRST_YEAR

    with pytest.raises(ValidationError):
        AppConfig(source={"first_year": FIRST_YEAR - 1})
