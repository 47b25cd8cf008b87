"""Centralized application configuration with schema validation.

This module is intentionally compatibility-first:
- Supports flat environment names (for example ``AWS_DEFAULT_REGION``).
- Supports nested names (for example ``AWS__DEFAULT_REGION``) for consistency.
- Optionally reads a local ``.env`` file before process env values.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from threading import Lock

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class AWSConfig(BaseModel):
    """AWS client defaults used by the services factory."""

    model_config = ConfigDict(frozen=True)

    default_region: str = Field(default="us-east-1")
    max_retries: int = Field(default=10, ge=1, le=25)
    timeout: int = Field(default=60, ge=1, le=300)
    connect_timeout: int = Field(default=5, ge=1, le=60)

    @field_validator("default_region", mode="before")
    @classmethod
    def _normalize_region(cls, value: object) -> str:
        text = str(value or "").strip()
        return text or "us-east-1"


class LoggingSettings(BaseModel):
    """Repository-wide logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    override_root_handlers: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return text
        return "INFO"


class AnalysisConfig(BaseModel):
    """Thresholds and presentation knobs for the cost-analysis engine.

    The summary and chart thresholds are independent settings.
    """

    model_config = ConfigDict(frozen=True)

    summary_threshold: float = Field(default=0.95, gt=0.0, le=1.0)
    chart_threshold: float = Field(default=0.90, gt=0.0, le=1.0)
    max_sub_dimensions: int = Field(default=10, ge=0, le=100)
    chart_width: int = Field(default=800, ge=100, le=4000)
    chart_height: int = Field(default=400, ge=100, le=4000)


class ToolsConfig(BaseModel):
    """Defaults applied by the AWS tools when the caller omits a value."""

    model_config = ConfigDict(frozen=True)

    daily_look_back: int = Field(default=30, ge=1, le=366)
    monthly_look_back: int = Field(default=6, ge=1, le=36)
    max_recommendations: int = Field(default=50, ge=1, le=1000)


class PricingConfig(BaseModel):
    """On-demand pricing lookups used to enrich instance descriptions."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True)
    cache_dir: str = Field(default="data/.cache/pricing")
    ttl_days: int = Field(default=7, ge=0, le=365)

    @field_validator("enabled", mode="before")
    @classmethod
    def _normalize_enabled(cls, value: object) -> bool:
        if value is None:
            return True
        text = str(value).strip().lower()
        if text in {"", "1", "true", "yes", "on"}:
            return True
        if text in {"0", "false", "no", "off"}:
            return False
        return True

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _normalize_cache_dir(cls, value: object) -> str:
        text = str(value or "").strip()
        return text or "data/.cache/pricing"


class Settings(BaseModel):
    """Top-level settings model."""

    model_config = ConfigDict(frozen=True)

    aws: AWSConfig = Field(default_factory=AWSConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)

    @classmethod
    def from_env(
        cls,
        *,
        env: Mapping[str, str] | None = None,
        env_file: str = ".env",
    ) -> Settings:
        """Build settings from `.env` then environment variables."""
        runtime_env = os.environ if env is None else env
        merged_env = _merge_env(_load_dotenv(Path(env_file)), runtime_env)
        payload = _build_payload(merged_env)
        return cls.model_validate(payload)


def _load_dotenv(path: Path) -> dict[str, str]:
    """Parse a minimal `.env` file format."""
    if not path.exists() or not path.is_file():
        return {}

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        key_clean = key.strip()
        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        if key_clean:
            values[key_clean] = value
    return values


def _merge_env(dotenv_values: Mapping[str, str], runtime_env: Mapping[str, str]) -> dict[str, str]:
    """Return env map where process env overrides `.env` values."""
    merged = {str(k): str(v) for k, v in dotenv_values.items()}
    for key, value in runtime_env.items():
        merged[str(key)] = str(value)
    return merged


def _first_non_empty(env: Mapping[str, str], *keys: str) -> str | None:
    """Return the first non-empty value for the provided keys."""
    for key in keys:
        value = str(env.get(key, "")).strip()
        if value:
            return value
    return None


def _build_payload(env: Mapping[str, str]) -> dict[str, object]:
    """Build nested settings payload from env values."""
    aws = {
        "default_region": _first_non_empty(env, "AWS__DEFAULT_REGION", "AWS_DEFAULT_REGION", "AWS_REGION"),
        "max_retries": _first_non_empty(env, "AWS__MAX_RETRIES", "AWS_MAX_RETRIES"),
        "timeout": _first_non_empty(env, "AWS__TIMEOUT", "AWS_TIMEOUT"),
        "connect_timeout": _first_non_empty(env, "AWS__CONNECT_TIMEOUT", "AWS_CONNECT_TIMEOUT"),
    }
    logging_settings = {
        "level": _first_non_empty(env, "LOGGING__LEVEL", "AWSTOOLS_LOG_LEVEL"),
        "json_logs": _first_non_empty(env, "LOGGING__JSON_LOGS", "AWSTOOLS_LOG_JSON"),
        "override_root_handlers": _first_non_empty(
            env, "LOGGING__OVERRIDE_ROOT_HANDLERS", "AWSTOOLS_LOG_OVERRIDE"
        ),
    }
    analysis = {
        "summary_threshold": _first_non_empty(env, "ANALYSIS__SUMMARY_THRESHOLD", "SUMMARY_THRESHOLD"),
        "chart_threshold": _first_non_empty(env, "ANALYSIS__CHART_THRESHOLD", "CHART_THRESHOLD"),
        "max_sub_dimensions": _first_non_empty(env, "ANALYSIS__MAX_SUB_DIMENSIONS", "MAX_SUB_DIMENSIONS"),
        "chart_width": _first_non_empty(env, "ANALYSIS__CHART_WIDTH", "CHART_WIDTH"),
        "chart_height": _first_non_empty(env, "ANALYSIS__CHART_HEIGHT", "CHART_HEIGHT"),
    }
    tools = {
        "daily_look_back": _first_non_empty(env, "TOOLS__DAILY_LOOK_BACK", "DAILY_LOOK_BACK"),
        "monthly_look_back": _first_non_empty(env, "TOOLS__MONTHLY_LOOK_BACK", "MONTHLY_LOOK_BACK"),
        "max_recommendations": _first_non_empty(env, "TOOLS__MAX_RECOMMENDATIONS", "MAX_RECOMMENDATIONS"),
    }
    pricing = {
        "enabled": _first_non_empty(env, "PRICING__ENABLED", "PRICING_ENABLED"),
        "cache_dir": _first_non_empty(env, "PRICING__CACHE_DIR", "PRICING_CACHE_DIR"),
        "ttl_days": _first_non_empty(env, "PRICING__TTL_DAYS", "PRICING_TTL_DAYS"),
    }
    return {
        "aws": {k: v for k, v in aws.items() if v is not None},
        "logging": {k: v for k, v in logging_settings.items() if v is not None},
        "analysis": {k: v for k, v in analysis.items() if v is not None},
        "tools": {k: v for k, v in tools.items() if v is not None},
        "pricing": {k: v for k, v in pricing.items() if v is not None},
    }


_SETTINGS_LOCK = Lock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, reload: bool = False) -> Settings:
    """Return cached settings, optionally forcing reload from env."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        if reload or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings.from_env()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear in-process settings cache."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


__all__ = [
    "AWSConfig",
    "AnalysisConfig",
    "LoggingSettings",
    "PricingConfig",
    "Settings",
    "ToolsConfig",
    "get_settings",
    "clear_settings_cache",
    "ValidationError",
]
