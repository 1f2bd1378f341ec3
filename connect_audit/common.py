"""
Common utilities shared across connect_audit modules.
"""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Sequence


def _env_int(name: str, default: int) -> int:
    """Positive integer from the environment, or default if unset or invalid."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        print(f"[connect_audit] ignoring invalid {name}={raw!r}", file=sys.stderr)
        return default
    return value if value > 0 else default


# Default timeout for OS query utilities (launchctl, klist, dscl, ...)
TIMEOUT_SECONDS = _env_int("CONNECT_AUDIT_TIMEOUT_SECONDS", 5)


def run_command(
    args: Sequence[str],
    timeout: float | None = None,
) -> subprocess.CompletedProcess | None:
    """
    Run an OS utility and capture its output.

    Args:
        args: Command and arguments
        timeout: Timeout in seconds (default: TIMEOUT_SECONDS)

    Returns:
        Completed process, or None if the command is missing or timed out
    """
    try:
        return subprocess.run(
            list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,  # Isolate stdin
            text=True,
            timeout=timeout or TIMEOUT_SECONDS,
            check=False,
            env={**os.environ, "TERM": "dumb"},  # Disable ANSI/color output from subprocesses
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        vlog(f"Command failed: {' '.join(args)} ({e})")
        return None


def command_output(args: Sequence[str], timeout: float | None = None) -> str | None:
    """
    Run an OS utility and return its stdout when it exits cleanly.

    Returns:
        Stripped stdout, or None on failure or non-zero exit
    """
    proc = run_command(args, timeout=timeout)
    if proc is None or proc.returncode != 0:
        return None
    return (proc.stdout or "").strip()


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or os.environ.get("CONNECT_AUDIT_DEBUG", "0") == "1":
        try:
            from .logging_config import get_logger
            logger = get_logger()
            logger.info(msg)
        except Exception:
            # Fallback to stderr if logging fails
            print(f"[connect_audit] {msg}", file=sys.stderr)
