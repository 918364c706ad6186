"""Tests for environment-driven settings."""

from daybook.config import Settings, get_settings, reset_settings_cache


def test_defaults(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("DB_POOL_TIMEOUT_SECONDS", raising=False)
    settings = Settings(_env_file=None)
    assert settings.environment == "production"
    assert settings.is_development is False
    assert settings.db_pool_timeout_seconds == 2.0
    assert settings.max_upload_bytes == 10 * 1024 * 1024
    assert settings.realtime_token_ttl_seconds == 1800


def test_environment_variables_override(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "Development")
    monkeypatch.setenv("DB_POOL_SIZE", "7")
    settings = Settings(_env_file=None)
    assert settings.is_development is True
    assert settings.db_pool_size == 7


def test_cors_origins_parsing():
    settings = Settings(_env_file=None, CORS_ALLOW_ORIGINS="https://a.test, https://b.test,")
    assert settings.cors_origins == ["https://a.test", "https://b.test"]
    assert Settings(_env_file=None, CORS_ALLOW_ORIGINS=" ").cors_origins == ["*"]


def test_settings_cache_reset(monkeypatch):
    reset_settings_cache()
    monkeypatch.setenv("TTS_MODEL", "tts-1")
    assert get_settings().tts_model == "tts-1"
    monkeypatch.setenv("TTS_MODEL", "tts-1-hd")
    assert get_settings().tts_model == "tts-1"
    reset_settings_cache()
    assert get_settings().tts_model == "tts-1-hd"
    reset_settings_cache()
