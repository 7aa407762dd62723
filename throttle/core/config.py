"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Settings are read-only after startup. Values that need richer validation
(interval strings, identifier callables) are turned into a ThrottleConfig by
throttle.services.throttle, which fails fast on invalid input.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
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

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


DEFAULT_HEADER_NAMES: dict[str, str] = {
    "limit": "X-RateLimit-Limit",
    "remaining": "X-RateLimit-Remaining",
    "reset": "X-RateLimit-Reset",
}


def _build_throttle_settings() -> "ThrottleSettings":
    """Build throttle settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return ThrottleSettings()  # type: ignore[call-arg]


def _build_store_settings() -> "StoreSettings":
    return StoreSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class ThrottleSettings(BaseSettings):
    """Rate limiting policy."""

    enabled: bool = Field(
        True,
        description="Enable the throttle middleware",
    )
    interval: str = Field(
        "+1 minute",
        description="Window length, e.g. '+1 minute', '30 seconds' or '90'",
    )
    limit: int = Field(
        10,
        description="Maximum number of requests allowed per window (per identity)",
        ge=0,
    )
    identifier: str | None = Field(
        None,
        description=(
            "Optional 'module:function' path of a callable mapping a request "
            "to an identity. Defaults to the client address."
        ),
    )
    headers: Any = Field(
        default_factory=lambda: dict(DEFAULT_HEADER_NAMES),
        description=(
            "JSON mapping with 'limit', 'remaining' and 'reset' header names. "
            "Anything else disables rate limit headers."
        ),
    )
    response_body: str = Field(
        "Rate limit exceeded",
        description="Body of the rejection response",
    )
    response_type: str = Field(
        "text/html",
        description="Content type of the rejection response",
    )
    response_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers merged into the rejection response",
    )
    namespace: str = Field(
        "throttle",
        description="Prefix applied to every counter store key",
    )
    fail_open: bool = Field(
        False,
        description="Let requests through when the counter store is unavailable",
    )

    model_config = SettingsConfigDict(
        env_prefix="THROTTLE_",
        case_sensitive=False,
    )

    @field_validator("headers", mode="before")
    @classmethod
    def _decode_headers(cls, value: Any) -> Any:
        """Decode JSON from the environment but keep anything malformed.

        A value that is not a valid header mapping only disables the rate
        limit headers; it must never stop the app from starting.
        """
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value


class StoreSettings(BaseSettings):
    """Counter store backend configuration."""

    backend: str = Field(
        "memory",
        description="Counter store backend: memory or redis",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL (redis backend only)",
    )
    socket_timeout_seconds: float | None = Field(
        2.0,
        description="Redis socket timeout in seconds (None blocks indefinitely)",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path (file output)")
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(3, description="Rotated log files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    throttle: ThrottleSettings = Field(default_factory=_build_throttle_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
