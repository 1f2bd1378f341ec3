"""
Logging setup for connect_audit.

Console diagnostics go to stderr as short "level: message" lines so that the
report on stdout (including --json) stays machine-readable. A log file, when
requested, always receives every record with timestamps and the emitting
module.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TextIO


LOGGER_NAME = "connect_audit"

CONSOLE_FORMAT = "%(tag)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(module)s: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_logger: logging.Logger | None = None


def _resolve_level(level: str | int | None, verbose: bool, quiet: bool) -> int:
    """Console level from flags, then the explicit level, then CONNECT_AUDIT_LOG_LEVEL."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    if isinstance(level, int):
        return level
    if level is None:
        # Invalid environment values fall back to INFO
        resolved = logging.getLevelName(os.environ.get("CONNECT_AUDIT_LOG_LEVEL", "INFO").strip().upper())
        return resolved if isinstance(resolved, int) else logging.INFO

    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def colors_enabled(stream: TextIO) -> bool:
    """Whether ANSI colors should be written to stream."""
    if os.environ.get("NO_COLOR") or os.environ.get("CONNECT_AUDIT_COLOR", "1") != "1":
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class ColoredFormatter(logging.Formatter):
    """
    Console formatter that tags each record with a lowercase level name.

    The tag is exposed to the format string as %(tag)s and is colored by
    level when colors are enabled.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str = CONSOLE_FORMAT, use_colors: bool = False):
        super().__init__(fmt)
        self.use_colors = use_colors

    def tag(self, record: logging.LogRecord) -> str:
        name = record.levelname.lower()
        color = self.LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        return f"{color}{name}{self.RESET}" if color else name

    def format(self, record: logging.LogRecord) -> str:
        record.tag = self.tag(record)
        return super().format(record)


def _console_handler(level: int, stream: TextIO) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(use_colors=colors_enabled(stream)))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logging(
    level: str | int | None = None,
    log_file: str | None = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure the connect_audit logger.

    Args:
        level: Console level name or number (default: CONNECT_AUDIT_LOG_LEVEL, else INFO)
        log_file: Also write DEBUG and above to this file
        verbose: Console at DEBUG
        quiet: Console at WARNING
        propagate: Pass records to the root logger (pytest caplog needs this)

    Returns:
        The configured logger

    Raises:
        ValueError: If level is not a known level name
    """
    global _logger

    console_level = _resolve_level(level, verbose, quiet)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(console_level, sys.stderr))
    if log_file:
        logger.addHandler(_file_handler(log_file))
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(console_level)

    logger.propagate = propagate
    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the connect_audit logger, configuring defaults on first use."""
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger
