"""
Unit tests for caption_sync.utils.logging module.
"""

import logging

import pytest

from caption_sync.utils.logging import (
    DEFAULT_FORMAT,
    PACKAGE_LOGGER,
    SessionLogAdapter,
    get_logger,
    resolve_level,
    set_log_level,
    setup_logging,
)


class TestResolveLevel:
    """Tests for resolve_level function."""

    def test_explicit_level(self):
        """Test explicit names resolve case-insensitively."""
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level("WARNING") == logging.WARNING

    def test_unknown_level_defaults_info(self):
        """Test unknown names fall back to INFO."""
        assert resolve_level("chatty") == logging.INFO

    def test_env_precedence(self, monkeypatch):
        """Test CAPTION_LOG_LEVEL wins over LOG_LEVEL."""
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert resolve_level() == logging.ERROR
        monkeypatch.setenv("CAPTION_LOG_LEVEL", "DEBUG")
        assert resolve_level() == logging.DEBUG

    def test_default_info(self, monkeypatch):
        """Test INFO when nothing is configured."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("CAPTION_LOG_LEVEL", raising=False)
        assert resolve_level() == logging.INFO


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_defaults_to_package_logger(self):
        """Test the package logger is configured by default."""
        logger = setup_logging(level="INFO")
        assert logger.name == PACKAGE_LOGGER
        assert logger.level == logging.INFO

    def test_custom_name_and_level(self):
        """Test a named logger with explicit level."""
        logger = setup_logging("caption_sync.test_custom", level="DEBUG")
        assert logger.level == logging.DEBUG

    def test_level_from_env(self, monkeypatch):
        """Test level is read from the environment."""
        monkeypatch.setenv("CAPTION_LOG_LEVEL", "WARNING")
        assert setup_logging("caption_sync.test_env").level == logging.WARNING

    def test_none_name_returns_root(self):
        """Test None configures the root logger."""
        assert setup_logging(None, level="WARNING").name == "root"


class TestHelpers:
    """Tests for get_logger and set_log_level."""

    def test_get_logger_same_instance(self):
        """Test get_logger returns the same logger per name."""
        assert get_logger("caption_sync.same") is get_logger("caption_sync.same")

    def test_set_log_level_named(self):
        """Test set_log_level changes a named logger."""
        set_log_level("error", "caption_sync.level_test")
        assert logging.getLogger("caption_sync.level_test").level == logging.ERROR

    def test_default_format_fields(self):
        """Test DEFAULT_FORMAT includes the standard fields."""
        for field in ("%(asctime)s", "%(name)s", "%(levelname)s", "%(message)s"):
            assert field in DEFAULT_FORMAT


class TestSessionLogAdapter:
    """Tests for SessionLogAdapter."""

    def test_prefixes_short_id(self, caplog):
        """Test messages carry the first 8 characters of the session id."""
        adapter = SessionLogAdapter(logging.getLogger("caption_sync.adapter_test"), "0123456789abcdef")
        with caplog.at_level(logging.INFO, logger="caption_sync.adapter_test"):
            adapter.info("Recognizer started")
        assert "[01234567] Recognizer started" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
