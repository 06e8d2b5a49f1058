"""Configuration module for the CoopBuy commitment engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from app.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    SMTP_SERVER: str | None
    SMTP_PORT: int
    SMTP_USERNAME: str | None
    SMTP_PASSWORD: str | None
    EMAIL_FROM: str
    EMAIL_ENABLED: bool
    EMAIL_SANDBOX_MODE: bool
    REPORTING_TIMEZONE: str
    DAILY_SUMMARY_HOUR: int
    SUMMARY_CLAIM_TTL_MINUTES: int
    REDIS_URL: str
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    @property
    def reporting_tz(self) -> ZoneInfo:
        return ZoneInfo(self.REPORTING_TIMEZONE)


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    config = Config(
        APP_NAME="CoopBuy",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./coopbuy.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        SMTP_SERVER=os.getenv("SMTP_SERVER"),
        SMTP_PORT=int(os.getenv("SMTP_PORT", "587")),
        SMTP_USERNAME=os.getenv("SMTP_USERNAME"),
        SMTP_PASSWORD=os.getenv("SMTP_PASSWORD"),
        EMAIL_FROM=os.getenv("EMAIL_FROM", os.getenv("SMTP_USERNAME") or "noreply@coopbuy.app"),
        EMAIL_ENABLED=_as_bool(os.getenv("EMAIL_ENABLED"), default=True),
        EMAIL_SANDBOX_MODE=_as_bool(os.getenv("EMAIL_SANDBOX_MODE"), default=(resolved_env != "production")),
        REPORTING_TIMEZONE=os.getenv("REPORTING_TIMEZONE", "America/Denver"),
        DAILY_SUMMARY_HOUR=int(os.getenv("DAILY_SUMMARY_HOUR", "23")),
        SUMMARY_CLAIM_TTL_MINUTES=int(os.getenv("SUMMARY_CLAIM_TTL_MINUTES", "30")),
        REDIS_URL=redis_url,
        CELERY_BROKER_URL=os.getenv("CELERY_BROKER_URL", redis_url),
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", redis_url),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", "coopbuy.log"),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    try:
        ZoneInfo(config.REPORTING_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown REPORTING_TIMEZONE: {config.REPORTING_TIMEZONE}") from exc
    if not 0 <= config.DAILY_SUMMARY_HOUR <= 23:
        raise ConfigurationError("DAILY_SUMMARY_HOUR must be between 0 and 23.")
    if config.SUMMARY_CLAIM_TTL_MINUTES < 1:
        raise ConfigurationError("SUMMARY_CLAIM_TTL_MINUTES must be >= 1.")
    if config.SMTP_PORT < 1:
        raise ConfigurationError("SMTP_PORT must be >= 1.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")
    if config.is_production and config.EMAIL_ENABLED and not config.EMAIL_SANDBOX_MODE and not config.SMTP_SERVER:
        raise ConfigurationError("SMTP_SERVER is required when production email is enabled.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
