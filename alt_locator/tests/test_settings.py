import logging

import pytest

from alt_locator import settings as settings_module
from alt_locator.results import FallbackMode
from alt_locator.settings import Settings, configure_settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        settings_module.FALLBACK_MODE_ENV,
        settings_module.LOG_LEVEL_ENV,
        settings_module.CORS_ORIGINS_ENV,
        settings_module.MAX_UPLOAD_MB_ENV,
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    configure_settings(Settings())


def test_defaults_without_environment():
    settings = Settings.from_env()

    assert settings.fallback_mode is FallbackMode.SPATIAL
    assert settings.log_level == "INFO"
    assert settings.cors_origins == ["*"]
    assert settings.max_upload_bytes == 50 * 1024 * 1024


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ALT_LOCATOR_FALLBACK_MODE", "Draw")
    monkeypatch.setenv("ALT_LOCATOR_LOG_LEVEL", "debug")
    monkeypatch.setenv("ALT_LOCATOR_CORS_ORIGINS", "https://a.example, https://b.example,")
    monkeypatch.setenv("ALT_LOCATOR_MAX_UPLOAD_MB", "5")

    settings = Settings.from_env()

    assert settings.fallback_mode is FallbackMode.DRAW
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.max_upload_mb == 5


@pytest.mark.parametrize("raw", ["0", "-3", "lots"])
def test_invalid_upload_limit_uses_default(monkeypatch, raw):
    monkeypatch.setenv("ALT_LOCATOR_MAX_UPLOAD_MB", raw)

    assert Settings.from_env().max_upload_mb == 50


def test_unknown_fallback_mode_logs_and_uses_default(monkeypatch, caplog):
    monkeypatch.setenv("ALT_LOCATOR_FALLBACK_MODE", "zigzag")

    with caplog.at_level(logging.WARNING, logger="alt_locator.settings"):
        settings = Settings.from_env()

    assert settings.fallback_mode is FallbackMode.SPATIAL
    assert "zigzag" in caplog.text


def test_configure_settings_replaces_process_settings():
    custom = Settings(fallback_mode=FallbackMode.DRAW)

    assert configure_settings(custom) is custom
    assert get_settings() is custom
