"""Tests for layered settings (defaults, YAML, environment)."""

import os
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from bovenkamer.config import settings as settings_module
from bovenkamer.config.settings import (
    CONFIG_ENV_VAR,
    LoggingSettings,
    ScoringSettings,
    last_yaml_path,
    load_settings,
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No stray config file or BOVENKAMER_ variables leak into these tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setattr(settings_module, "_yaml_path", None)
    for var in list(os.environ):
        if var.startswith("BOVENKAMER_"):
            monkeypatch.delenv(var, raising=False)


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    settings = load_settings()

    assert settings.test_mode is False
    assert settings.scoring.predictions_form_key == "predictions"
    assert settings.scoring.eligible_status == "approved"
    assert settings.scoring.max_concurrency == 16
    assert settings.params.numeric.close_pct == Decimal("10")
    assert settings.database.resolved_url().startswith("sqlite+aiosqlite:///")
    assert last_yaml_path() is None


def test_yaml_file_overrides_defaults(tmp_path):
    path = _write(tmp_path / "custom.yaml", """
scoring:
  max_concurrency: 4
params:
  numeric:
    close_pct: 5
    near_pct: 20
logging:
  json: true
""")

    settings = load_settings(path)

    assert settings.scoring.max_concurrency == 4
    assert settings.scoring.eligible_status == "approved"
    assert settings.params.numeric.close_pct == Decimal("5")
    assert settings.logging.json_logs is True
    assert last_yaml_path() == path.resolve()


def test_environment_wins_over_yaml(tmp_path, monkeypatch):
    path = _write(tmp_path / "custom.yaml", "scoring:\n  max_concurrency: 4\n")
    monkeypatch.setenv("BOVENKAMER_SCORING__MAX_CONCURRENCY", "8")

    assert load_settings(path).scoring.max_concurrency == 8


def test_config_env_var(tmp_path, monkeypatch):
    path = _write(tmp_path / "elsewhere" / "b.yaml", "test_mode: true\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert load_settings().test_mode is True


def test_default_config_location(tmp_path):
    _write(tmp_path / "config" / "bovenkamer.yaml", "scoring:\n  eligible_status: confirmed\n")

    assert load_settings().scoring.eligible_status == "confirmed"


def test_non_mapping_yaml_is_rejected(tmp_path):
    path = _write(tmp_path / "bad.yaml", "- just\n- a list\n")

    with pytest.raises(ValueError, match="mapping"):
        load_settings(path)


def test_database_url_from_env(monkeypatch):
    monkeypatch.setenv("BOVENKAMER_DATABASE__URL", "postgresql+asyncpg://u@h:5432/db")

    assert load_settings().database.resolved_url() == "postgresql+asyncpg://u@h:5432/db"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_concurrency": 0},
        {"max_concurrency": 1000},
        {"request_timeout_seconds": 0},
        {"request_timeout_seconds": 601},
    ],
)
def test_scoring_settings_bounds(kwargs):
    with pytest.raises(PydanticValidationError):
        ScoringSettings(**kwargs)


def test_logging_json_alias():
    assert LoggingSettings(json=True).json_logs is True
    assert LoggingSettings(json=True, json_logs=False).json_logs is False
