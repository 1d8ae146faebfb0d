"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Rate-limit policies are configured per notification category through
``GATE_POLICIES``, a JSON object such as::

    {"news": {"max_requests": 1, "window_seconds": 86400}}
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename
_env_file = str(_env_path) if _env_path.is_file() else None

# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class PolicySettings(BaseModel):
    """Quota declared for a single notification category."""

    max_requests: int = Field(
        ...,
        description="Maximum notifications per recipient within one window (0 blocks the category)",
        ge=0,
    )
    window_seconds: float = Field(
        ...,
        description="Length of the fixed window in seconds",
        gt=0,
        allow_inf_nan=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    notifier: str = Field(
        "logging",
        description="Delivery adapter used after admission (logging, memory)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class GateSettings(BaseSettings):
    """Admission gate configuration."""

    policies: dict[str, PolicySettings] = Field(
        default_factory=dict,
        description="Pre-registered policies keyed by notification category (JSON)",
    )
    default_max_requests: int = Field(
        2**32 - 1,
        description="Quota synthesized for categories without a registered policy",
        ge=0,
    )
    default_window_seconds: float = Field(
        1.0,
        description="Window synthesized for categories without a registered policy",
        gt=0,
        allow_inf_nan=False,
    )
    inclusive_boundary: bool = Field(
        True,
        description="Treat a request landing exactly on the window end as inside the window",
    )
    eviction_grace_seconds: float = Field(
        3600.0,
        description="How long an expired recipient window is kept before it may be evicted",
        ge=0,
    )
    sweep_every: int = Field(
        1000,
        description="Run an eviction sweep every N decisions (0 disables sweeps)",
        ge=0,
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="GATE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_app_settings() -> AppSettings:
    return AppSettings()


def _build_gate_settings() -> GateSettings:
    return GateSettings()


def _build_log_settings() -> LogSettings:
    return LogSettings()


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    gate: GateSettings = Field(default_factory=_build_gate_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
