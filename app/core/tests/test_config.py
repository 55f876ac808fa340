"""Tests for application configuration."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.core.config import Settings, get_settings


def test_settings_has_defaults():
    """Settings should have sensible defaults."""
    settings = Settings()

    assert settings.app_name == "Milkr"
    assert settings.app_env == "development"
    assert settings.debug is False
    assert settings.log_level == "INFO"
    assert settings.log_format == "json"
    assert settings.api_port == 5000


def test_settings_business_defaults():
    """Billing, analytics and forecast defaults match the documented behavior."""
    settings = Settings()

    assert settings.default_price_per_litre == Decimal("60")
    assert settings.billing_days_per_month == 30
    assert settings.analytics_window_days == 30
    assert settings.analytics_top_customers == 5
    assert settings.analytics_payment_trend_months == 12
    assert settings.forecast_history_months == 6
    assert settings.forecast_default_months == 3
    assert settings.forecast_max_months == 24


def test_settings_is_development_property():
    """is_development should return True for development env."""
    settings = Settings(app_env="development")
    assert settings.is_development is True
    assert settings.is_production is False


def test_settings_is_production_property():
    """is_production should return True for production env."""
    settings = Settings(app_env="production")
    assert settings.is_development is False
    assert settings.is_production is True


def test_settings_rejects_negative_default_price():
    with pytest.raises(ValidationError):
        Settings(default_price_per_litre=Decimal("-1"))


def test_get_settings_returns_singleton():
    """get_settings should return cached singleton."""
    settings1 = get_settings()
    settings2 = get_settings()

    assert settings1 is settings2


def test_settings_from_environment(monkeypatch):
    """Settings should load from environment variables."""
    monkeypatch.setenv("APP_NAME", "TestDairy")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("FORECAST_MAX_MONTHS", "12")

    settings = Settings()

    assert settings.app_name == "TestDairy"
    assert settings.debug is True
    assert settings.log_level == "DEBUG"
    assert settings.forecast_max_months == 12
