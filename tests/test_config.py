"""Tests for settings and logging setup."""
import logging

import pytest

from aeo_analyzer.config import APP_NAME, ConfigError, Settings, _env_int, get_settings, setup_logging


class TestSettings:
    def test_guard_defaults(self):
        s = Settings(FETCH_TIMEOUT_MS=12000, MAX_HTML_BYTES=2_000_000, MAX_REDIRECTS=5)
        assert s.FETCH_TIMEOUT_MS == 12000
        assert s.MAX_HTML_BYTES == 2_000_000
        assert s.MAX_REDIRECTS == 5

    def test_env_int(self, monkeypatch):
        monkeypatch.setenv("AEO_TEST_INT", "42")
        assert _env_int("AEO_TEST_INT", 1) == 42
        monkeypatch.setenv("AEO_TEST_INT", "forty-two")
        assert _env_int("AEO_TEST_INT", 1) == 1
        monkeypatch.delenv("AEO_TEST_INT")
        assert _env_int("AEO_TEST_INT", 7) == 7

    def test_postgres_url_rewrite(self):
        s = Settings(DATABASE_URL="postgres://u:p@db:5432/aeo")
        assert s.database_url == "postgresql+psycopg://u:p@db:5432/aeo"
        assert Settings(DATABASE_URL="postgresql://db/aeo").database_url == "postgresql+psycopg://db/aeo"
        assert Settings(DATABASE_URL="sqlite://").database_url == "sqlite://"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestValidateRuntime:
    def test_production_requires_salt(self):
        with pytest.raises(ConfigError):
            Settings(ENV="production", IP_HASH_SALT="").validate_runtime()

    def test_production_with_salt(self):
        Settings(ENV="Production", IP_HASH_SALT="salt").validate_runtime()

    def test_development_warns_without_salt(self, caplog, monkeypatch):
        monkeypatch.setattr(logging.getLogger(APP_NAME), "propagate", True)
        with caplog.at_level(logging.WARNING, logger=APP_NAME):
            Settings(ENV="development", IP_HASH_SALT="").validate_runtime()
        assert "AEO_IP_HASH_SALT not set" in caplog.text


class TestSetupLogging:
    def test_stream_handler_only(self):
        logger = setup_logging("debug")
        assert logger.name == APP_NAME
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_file_handler(self, tmp_path):
        logger = setup_logging("INFO", str(tmp_path / "logs"))
        assert len(logger.handlers) == 2
        assert (tmp_path / "logs" / f"{APP_NAME}.log").exists()
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
