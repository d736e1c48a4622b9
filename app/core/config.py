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


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_mail_settings() -> "MailSettings":
    return MailSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class AppSettings(BaseSettings):
    """Application-wide configuration, including the mail endpoint limiter."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-visitor rate limiting on the mail endpoint",
    )
    rate_limit_requests: int = Field(
        5,
        description="Requests per window; the request that reaches this count is denied",
        ge=1,
    )
    rate_limit_interval_ms: int = Field(
        3_600_000,
        description="Lifetime of a visitor's counter in milliseconds (refreshed on each request)",
        ge=1,
    )
    rate_limit_max_identities: int = Field(
        100,
        description="Maximum number of distinct visitors tracked before LRU eviction",
        ge=1,
    )

    identity_cookie_max_age_seconds: int = Field(
        60 * 60 * 24,
        description="Max-Age of the userUuid / userUuid_expires cookies",
        ge=1,
    )
    cookie_secure: bool = Field(
        False,
        description="Mark identity cookies as Secure (HTTPS only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class MailSettings(BaseSettings):
    """Outgoing mail configuration.

    When ``smtp_host`` is unset, submissions are written to the log instead
    of being delivered (useful for local development).
    """

    smtp_host: str | None = Field(
        None,
        description="SMTP server hostname; leave empty to log messages instead",
    )
    smtp_port: int = Field(
        587,
        description="SMTP server port",
    )
    smtp_username: str | None = Field(
        None,
        description="SMTP username",
    )
    smtp_password: str | None = Field(
        None,
        description="SMTP password",
    )
    smtp_use_tls: bool = Field(
        True,
        description="Upgrade the connection with STARTTLS",
    )
    from_email: str = Field(
        "noreply@localhost",
        description="Envelope sender for contact messages",
    )
    to_email: str | None = Field(
        None,
        description="Inbox that receives contact form submissions",
    )
    timeout_seconds: float = Field(
        10.0,
        description="SMTP connection/command timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="MAIL_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate the log file at this size (0 disables rotation)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    mail: MailSettings = Field(default_factory=_build_mail_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
