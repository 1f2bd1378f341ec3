"""
Tests for logging configuration module.
"""

import io
import logging
import sys

import pytest

from connect_audit.logging_config import (
    LOGGER_NAME,
    ColoredFormatter,
    colors_enabled,
    get_logger,
    setup_logging,
)


def make_record(level=logging.INFO, msg="Test message"):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


def console_handlers(logger):
    return [
        h for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]


class FakeTTY(io.StringIO):
    def isatty(self):
        return True


class TestSetupLogging:
    """Test logging setup and configuration."""

    def test_setup_logging_default(self, monkeypatch):
        """Test default logging setup."""
        monkeypatch.delenv("CONNECT_AUDIT_LOG_LEVEL", raising=False)
        logger = setup_logging()
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.INFO

    def test_setup_logging_verbose(self):
        """Test verbose logging enables DEBUG level."""
        logger = setup_logging(verbose=True)
        assert console_handlers(logger)[0].level == logging.DEBUG

    def test_setup_logging_quiet(self):
        """Test quiet mode only lets warnings through to the console."""
        logger = setup_logging(quiet=True)
        assert console_handlers(logger)[0].level == logging.WARNING

    def test_console_goes_to_stderr(self):
        """Test console diagnostics never land on stdout."""
        logger = setup_logging()
        handlers = console_handlers(logger)
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr

    def test_level_from_environment(self, monkeypatch):
        """Test CONNECT_AUDIT_LOG_LEVEL sets the default console level."""
        monkeypatch.setenv("CONNECT_AUDIT_LOG_LEVEL", "error")
        logger = setup_logging()
        assert console_handlers(logger)[0].level == logging.ERROR

    def test_invalid_environment_level(self, monkeypatch):
        """Test an unknown CONNECT_AUDIT_LOG_LEVEL falls back to INFO."""
        monkeypatch.setenv("CONNECT_AUDIT_LOG_LEVEL", "chatty")
        logger = setup_logging()
        assert console_handlers(logger)[0].level == logging.INFO

    def test_verbose_beats_level(self):
        """Test --verbose wins over an explicit level."""
        logger = setup_logging(level="ERROR", verbose=True)
        assert console_handlers(logger)[0].level == logging.DEBUG

    def test_unknown_level(self):
        """Test an unknown level name is rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging(level="chatty")

    def test_setup_logging_with_file(self, tmp_path):
        """Test the log file gets debug records the console filters out."""
        log_file = tmp_path / "logs" / "jcp.log"
        logger = setup_logging(log_file=str(log_file))

        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert logger.level == logging.DEBUG
        assert console_handlers(logger)[0].level == logging.INFO

        logger.debug("Read legacy Info.plist")
        for handler in file_handlers:
            handler.flush()
        text = log_file.read_text()
        assert "DEBUG" in text
        assert "Read legacy Info.plist" in text

        setup_logging()
        assert file_handlers[0].stream is None

    def test_setup_logging_replaces_handlers(self):
        """Test repeated setup does not stack handlers."""
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1


class TestGetLogger:
    """Test logger retrieval."""

    def test_get_logger_returns_instance(self):
        """Test get_logger returns logger instance."""
        assert isinstance(get_logger(), logging.Logger)

    def test_get_logger_singleton(self):
        """Test get_logger returns same instance."""
        assert get_logger() is get_logger()


class TestColoredFormatter:
    """Test the console formatter."""

    def test_plain_tag(self):
        """Test the level tag is lowercase without colors."""
        formatted = ColoredFormatter().format(make_record(level=logging.WARNING))
        assert formatted == "warning: Test message"

    def test_colored_tag(self):
        """Test the tag is wrapped in the level color."""
        formatted = ColoredFormatter(use_colors=True).format(make_record(level=logging.ERROR))
        assert formatted == "\033[31merror\033[0m: Test message"

    def test_all_levels(self):
        """Test every standard level gets a colored tag."""
        formatter = ColoredFormatter(use_colors=True)
        for level in [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL]:
            formatted = formatter.format(make_record(level=level, msg="Test"))
            assert logging.getLevelName(level).lower() in formatted
            assert "\033[" in formatted

    def test_custom_level_uncolored(self):
        """Test levels without a color fall back to the plain tag."""
        formatted = ColoredFormatter(use_colors=True).format(make_record(level=25))
        assert formatted == "level 25: Test message"


class TestColorsEnabled:
    """Test color detection for the console stream."""

    def test_not_a_tty(self, monkeypatch):
        """Test pipes get no colors."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CONNECT_AUDIT_COLOR", raising=False)
        assert not colors_enabled(io.StringIO())

    def test_tty(self, monkeypatch):
        """Test terminals get colors."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CONNECT_AUDIT_COLOR", raising=False)
        assert colors_enabled(FakeTTY())

    @pytest.mark.parametrize("name,value", [("NO_COLOR", "1"), ("CONNECT_AUDIT_COLOR", "0")])
    def test_disabled_by_environment(self, monkeypatch, name, value):
        """Test NO_COLOR and CONNECT_AUDIT_COLOR=0 turn colors off."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CONNECT_AUDIT_COLOR", raising=False)
        monkeypatch.setenv(name, value)
        assert not colors_enabled(FakeTTY())


class TestVlog:
    """Test vlog routing through the package logger."""

    def test_vlog_integration(self, caplog):
        """Test vlog uses the package logger."""
        from connect_audit.common import vlog

        setup_logging(level="INFO", propagate=True)
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            vlog("Test vlog message", verbose=True)
            assert "Test vlog message" in caplog.text

    def test_vlog_respects_verbose_flag(self, caplog, monkeypatch):
        """Test vlog is silent without verbose."""
        from connect_audit.common import vlog

        monkeypatch.delenv("CONNECT_AUDIT_DEBUG", raising=False)
        setup_logging(level="INFO", propagate=True)
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            caplog.clear()
            vlog("Should not appear", verbose=False)
            assert "Should not appear" not in caplog.text

    def test_vlog_debug_env(self, caplog, monkeypatch):
        """Test CONNECT_AUDIT_DEBUG=1 forces vlog output."""
        from connect_audit.common import vlog

        monkeypatch.setenv("CONNECT_AUDIT_DEBUG", "1")
        setup_logging(level="INFO", propagate=True)
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            vlog("Forced message", verbose=False)
            assert "Forced message" in caplog.text
