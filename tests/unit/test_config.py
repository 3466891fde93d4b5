"""Unit tests for settings loading."""

import pytest

from device_gateway.config import Settings
from device_gateway.core.exceptions import ConfigValidationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("API_KEY", "REQUIRE_API_KEY", "ALLOWED_DEVICES", "TOKEN_TTL_SECONDS", "PORT", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.PORT == 3000
    assert settings.TOKEN_TTL_SECONDS == 1800
    assert settings.SWEEP_INTERVAL_SECONDS == 300
    assert settings.UPSTREAM_TIMEOUT_SECONDS == 15.0
    assert settings.allowed_devices == frozenset({"D85ED35351D2", "60189512073D", "08606E944B0C"})
    assert settings.cors_origins == ["*"]


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("API_KEY", "sk-env")
    monkeypatch.setenv("ALLOWED_DEVICES", " AAAAAAAAAAAA , BBBBBBBBBBBB,, ")
    monkeypatch.setenv("TOKEN_TTL_SECONDS", "60")

    settings = Settings(_env_file=None)

    assert settings.PORT == 8080
    assert settings.API_KEY == "sk-env"
    assert settings.allowed_devices == frozenset({"AAAAAAAAAAAA", "BBBBBBBBBBBB"})
    assert settings.TOKEN_TTL_SECONDS == 60


def test_missing_api_key_only_warns_by_default():
    warnings = Settings(_env_file=None).check_startup()

    assert any("API_KEY" in w for w in warnings)


def test_missing_api_key_fails_when_required():
    settings = Settings(_env_file=None, REQUIRE_API_KEY=True)

    with pytest.raises(ConfigValidationError):
        settings.check_startup()


def test_empty_allow_list_warns():
    settings = Settings(_env_file=None, API_KEY="sk", ALLOWED_DEVICES="")

    assert settings.check_startup() == ["ALLOWED_DEVICES is empty; no device can obtain a token"]
