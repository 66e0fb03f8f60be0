from decimal import Decimal

import pytest
from pydantic import ValidationError

from food_delivery.core.config import EnvironmentMode, Settings


def test_server_settings_come_from_environment(monkeypatch):
    monkeypatch.setenv("API_HOST", "127.0.0.1")
    monkeypatch.setenv("API_PORT", "8080")

    settings = Settings(_env_file=None)

    assert settings.api_host == "127.0.0.1"
    assert settings.api_port == 8080


def test_env_mode_is_case_insensitive():
    settings = Settings(_env_file=None, env_mode="STAGING")
    assert settings.env_mode is EnvironmentMode.STAGING
    assert settings.use_real_services
    assert not settings.is_development


def test_negative_rates_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, tax_rate=Decimal("-0.01"))


def test_production_config_flags_unsafe_defaults():
    settings = Settings(
        _env_file=None,
        env_mode="production",
        database_url="sqlite+aiosqlite:///./orders.db",
        cors_origin="*",
    )
    assert set(settings.validate_production_config()) == {"DATABASE_URL", "CORS_ORIGIN"}
