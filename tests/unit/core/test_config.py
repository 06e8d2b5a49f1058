from __future__ import annotations

import pytest

import app.core.config as config_module
from app.core.exceptions import ConfigurationError


def test_defaults(monkeypatch):
    for key in ("DATABASE_URL", "REPORTING_TIMEZONE", "DAILY_SUMMARY_HOUR", "EMAIL_SANDBOX_MODE", "EMAIL_ENABLED"):
        monkeypatch.delenv(key, raising=False)

    config = config_module._build_config("development")

    assert config.APP_NAME == "CoopBuy"
    assert config.REPORTING_TIMEZONE == "America/Denver"
    assert config.DAILY_SUMMARY_HOUR == 23
    assert config.EMAIL_ENABLED is True
    assert config.EMAIL_SANDBOX_MODE is True
    assert config.reporting_tz.key == "America/Denver"


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("DATABASE_URL", "mysql://db/coopbuy"),
        ("REPORTING_TIMEZONE", "Mars/Olympus_Mons"),
        ("DAILY_SUMMARY_HOUR", "24"),
        ("SUMMARY_CLAIM_TTL_MINUTES", "0"),
        ("LOG_LEVEL", "CHATTY"),
    ],
)
def test_invalid_values_raise(monkeypatch, key, value):
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigurationError):
        config_module._build_config("development")


def test_production_requires_smtp_when_sending(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://app:pw@db.internal:5432/coopbuy")
    monkeypatch.setenv("EMAIL_ENABLED", "true")
    monkeypatch.delenv("EMAIL_SANDBOX_MODE", raising=False)
    monkeypatch.delenv("SMTP_SERVER", raising=False)

    with pytest.raises(ConfigurationError, match="SMTP_SERVER"):
        config_module._build_config("production")
