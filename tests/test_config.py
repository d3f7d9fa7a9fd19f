"""Tests for runtime settings."""

import logging

from config import Settings, configure_logging


class TestSettings:
    """Test settings defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CARDIORISK_STRICT_INPUTS", raising=False)
        config = Settings(_env_file=None)
        assert config.strict_inputs is True
        assert config.default_model == "riskcalculator"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CARDIORISK_STRICT_INPUTS", "false")
        assert Settings(_env_file=None).strict_inputs is False

    def test_configure_logging_reports_settings(self, caplog):
        caplog.set_level(logging.INFO, logger="config")
        configure_logging(Settings(_env_file=None, strict_inputs=False))
        assert "Settings loaded: strict_inputs=False" in caplog.text
