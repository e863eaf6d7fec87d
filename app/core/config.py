"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
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


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) populates values from environment variables, but
    static type checkers treat required fields as constructor arguments.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_database_settings() -> "DatabaseSettings":
    return DatabaseSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_prefix: str = Field(
        "/api",
        description="Path prefix for all resource and authentication routes",
    )
    default_page_size: int = Field(
        10,
        description="Page size used when page_size is not supplied",
        ge=1,
    )
    max_page_size: int = Field(
        100,
        description="Largest page_size a client may request",
        ge=1,
    )

    login_rate_limit_enabled: bool = Field(
        True,
        description="Limit repeated login attempts per client address",
    )
    login_rate_limit_attempts: int = Field(
        5,
        description="Maximum login attempts allowed per window (per client)",
        ge=1,
    )
    login_rate_limit_window_seconds: int = Field(
        30 * 60,
        description="Login rate limit window size in seconds",
        ge=1,
    )
    trust_proxy_headers: bool = Field(
        False,
        description="Identify clients by the first X-Forwarded-For address (behind a reverse proxy)",
    )
    login_rate_limit_include_headers: bool = Field(
        True,
        description="Include Retry-After and X-RateLimit-* headers when throttling",
    )

    session_ttl_seconds: int = Field(
        24 * 60 * 60,
        description="Lifetime of a session token issued at login",
        ge=1,
    )
    session_max_entries: int | None = Field(
        10000,
        description="Maximum number of live session tokens (None for unlimited)",
    )
    seed_user_name: str = Field(
        "Administrator",
        description="Name of the user created at startup when seed_user_email is set",
    )
    seed_user_email: str | None = Field(
        None,
        description="Create this user at startup if absent, so the first login is possible",
    )
    seed_user_password: str | None = Field(
        None,
        description="Password for the seeded user",
    )
    bcrypt_rounds: int = Field(
        12,
        description="bcrypt cost factor used when hashing passwords",
        ge=4,
        le=31,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Record store configuration.

    ``backend=memory`` keeps records in process (development and tests);
    ``backend=mongo`` connects to MongoDB through pymongo.
    """

    backend: str = Field(
        "memory",
        description="Record store backend: memory or mongo",
    )
    connection: str = Field(
        "mongodb://localhost:27017",
        description="MongoDB connection URI",
    )
    name: str = Field(
        "toko",
        description="MongoDB database name",
    )
    timeout_ms: int = Field(
        5000,
        description="Server selection timeout in milliseconds",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

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
    app: AppSettings = Field(default_factory=_build_app_settings)
    database: DatabaseSettings = Field(default_factory=_build_database_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
