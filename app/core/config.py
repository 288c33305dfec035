"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
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

# Production may inject everything via env vars only
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
# Values already present in the environment win over the file.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


class AppSettings(BaseSettings):
    """HTTP-facing application configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    port: int = Field(
        8080,
        description="Port used when the service is started with `python -m app`",
        validation_alias=AliasChoices("APP_PORT", "PORT"),
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-IP rate limiting on the signup endpoint",
    )
    rate_limit_requests: int = Field(
        5,
        description="Tokens refilled per window (sustained request rate)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Window over which rate_limit_requests tokens are refilled",
        ge=1,
    )
    rate_limit_burst: int = Field(
        5,
        description="Token bucket capacity (max requests admitted back-to-back)",
        ge=1,
    )
    rate_limit_max_keys: int = Field(
        10000,
        description="Maximum number of client IPs tracked before eviction",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        populate_by_name=True,
    )


class AuthSettings(BaseSettings):
    """Credential handling and token signing configuration.

    A missing jwt_secret does not prevent startup; every login then fails
    with a configuration error at request time.
    """

    jwt_secret: str | None = Field(
        None,
        description="Symmetric secret used to sign bearer tokens",
        validation_alias=AliasChoices("AUTH_JWT_SECRET", "JWT_SECRET"),
    )
    jwt_algorithm: str = Field(
        "HS256",
        description="JWS algorithm identifier used for signing",
    )
    token_ttl_hours: int = Field(
        24,
        description="Token lifetime in hours",
        ge=1,
    )
    bcrypt_rounds: int = Field(
        12,
        description="bcrypt cost factor (log2 of the work factor)",
        ge=4,
        le=31,
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
        populate_by_name=True,
    )


class DatabaseSettings(BaseSettings):
    """Credential store configuration."""

    backend: str = Field(
        "mongo",
        description="Store backend: 'mongo' or 'memory'",
    )
    uri: str | None = Field(
        None,
        description="MongoDB connection string (required for the mongo backend)",
        validation_alias=AliasChoices("DB_URI", "MONGO_URI"),
    )
    name: str = Field(
        "auth_db",
        description="Database name",
    )
    users_collection: str = Field(
        "users",
        description="Collection holding user documents",
    )
    operation_timeout_seconds: float = Field(
        10.0,
        description="Per-operation timeout for store queries and writes",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
        populate_by_name=True,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and propagate the request id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Nested groups are created via default_factory so each reads its own
    env prefix.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
