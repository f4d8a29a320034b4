from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .db_url import DEFAULT_SQLITE_PATH, resolve_database_url
from .scoring_params import ScoringParams


CONFIG_ENV_VAR = "BOVENKAMER_CONFIG"

_yaml_path: Path | None = None


class DatabaseSettings(BaseModel):
    url: str | None = None
    user: str | None = None
    password: str | None = None
    host: str = "127.0.0.1"
    port: int = 5432
    name: str | None = None
    sqlite_path: str = DEFAULT_SQLITE_PATH
    echo: bool = False

    def resolved_url(self) -> str:
        return resolve_database_url(self)


class ScoringSettings(BaseModel):
    predictions_form_key: str = "predictions"
    eligible_status: str = "approved"
    max_concurrency: int = Field(default=16, ge=1, le=256)
    request_timeout_seconds: float = Field(default=30.0, gt=0, le=600)


class LoggingSettings(BaseModel):
    json_logs: bool = False
    level: str = "INFO"
    log_dir: str | None = None
    audit_retention_bytes: int = Field(default=5 * 1024 * 1024, ge=1024)

    @model_validator(mode="before")
    @classmethod
    def _alias_json(cls, data: Any) -> Any:
        if isinstance(data, dict) and "json" in data and "json_logs" not in data:
            data = dict(data)
            data["json_logs"] = data.pop("json")
        return data


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BOVENKAMER_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    test_mode: bool = False
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    params: ScoringParams = Field(default_factory=ScoringParams)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="before")
    @classmethod
    def _apply_yaml_overrides(cls, data: Any) -> Any:
        overrides = _load_yaml_overrides()
        if not overrides:
            return data
        if isinstance(data, dict):
            return _deep_merge(overrides, data)
        return overrides


def last_yaml_path() -> Path | None:
    return _yaml_path


def load_settings(config_path: str | os.PathLike[str] | None = None) -> Settings:
    """Build settings from YAML overrides and the environment.

    Environment variables win over the YAML file; the YAML file wins over
    defaults.
    """
    global _yaml_path
    _yaml_path = Path(config_path).resolve() if config_path else None
    return Settings()


def _yaml_candidates() -> list[Path]:
    candidates: list[Path] = []
    if _yaml_path is not None:
        candidates.append(_yaml_path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).resolve())
    candidates.append(Path.cwd() / "config" / "bovenkamer.yaml")
    return candidates


def _load_yaml_overrides() -> Dict[str, Any]:
    for path in _yaml_candidates():
        if not path.exists():
            continue
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"settings file {path} must contain a mapping")
        return data
    return {}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


__all__ = [
    "CONFIG_ENV_VAR",
    "DatabaseSettings",
    "ScoringSettings",
    "LoggingSettings",
    "Settings",
    "load_settings",
    "last_yaml_path",
]
