"""Logging and formatting utilities for muaddib-claude.

Console helpers (``log_info``, ``log_warn`` ...) print directly so command
output stays predictable under Click's test runner. Library modules log
through the ``muaddib_claude`` logger hierarchy, which is configured here
with the same message prefixes.
"""

from __future__ import annotations

import logging
import os
import sys


def _should_use_colors() -> bool:
    """Check if colors should be used based on TERM and NO_COLOR."""
    if os.environ.get("NO_COLOR") is not None:
        return False
    term = os.environ.get("TERM", "")
    if not term or term == "dumb":
        return False
    return True


_USE_COLORS = _should_use_colors()

# ANSI color codes
BOLD = "\033[1m" if _USE_COLORS else ""
DIM = "\033[2m" if _USE_COLORS else ""
RESET = "\033[0m" if _USE_COLORS else ""
RED = "\033[91m" if _USE_COLORS else ""
YELLOW = "\033[93m" if _USE_COLORS else ""
BLUE = "\033[94m" if _USE_COLORS else ""
GREEN = "\033[92m" if _USE_COLORS else ""


def debug_enabled() -> bool:
    """Return True when MUADDIB_DEBUG is set to 1 or true."""
    return os.environ.get("MUADDIB_DEBUG", "").lower() in ("1", "true")


class MuaddibFormatter(logging.Formatter):
    """Formatter that matches the console helper prefixes."""

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()

        if record.levelno == logging.DEBUG:
            return f"DEBUG: {msg}"
        elif record.levelno >= logging.ERROR:
            return f"Error: {msg}"
        elif record.levelno == logging.WARNING:
            return f"Warning: {msg}"

        return msg


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


_logger = logging.getLogger("muaddib_claude")

# Only add handlers if none exist
if not _logger.handlers:
    _formatter = MuaddibFormatter()

    _handler = logging.StreamHandler(sys.stdout)
    _handler.addFilter(_BelowWarning())
    _handler.setFormatter(_formatter)
    _logger.addHandler(_handler)

    # Warnings and errors go to stderr
    _stderr_handler = logging.StreamHandler(sys.stderr)
    _stderr_handler.setLevel(logging.WARNING)
    _stderr_handler.setFormatter(_formatter)
    _logger.addHandler(_stderr_handler)

    _logger.propagate = False

_logger.setLevel(logging.DEBUG if debug_enabled() else logging.WARNING)


def configure_logging(debug: bool = False) -> None:
    """Set the package logger level; ``debug`` or MUADDIB_DEBUG enables DEBUG."""
    _logger.setLevel(logging.DEBUG if (debug or debug_enabled()) else logging.WARNING)


def log_info(msg: str) -> None:
    """Log an info message to stdout.

    Args:
        msg: The message to log.
    """
    print(msg)


def log_debug(msg: str) -> None:
    """Log a debug message (only if MUADDIB_DEBUG=1).

    Args:
        msg: The message to log.
    """
    if debug_enabled():
        print(f"DEBUG: {msg}")


def log_warn(msg: str) -> None:
    """Log a warning message to stderr.

    Args:
        msg: The message to log.
    """
    print(f"{YELLOW}Warning:{RESET} {msg}", file=sys.stderr)


def log_error(msg: str) -> None:
    """Log an error message to stderr.

    Args:
        msg: The message to log.
    """
    print(f"{RED}Error:{RESET} {msg}", file=sys.stderr)


def log_success(msg: str) -> None:
    """Log a success message with a check mark."""
    print(f"{GREEN}✓{RESET} {msg}")


def log_dim(msg: str) -> None:
    print(f"{DIM}{msg}{RESET}")


def log_section(msg: str) -> None:
    """Log a section header with arrow and bold formatting.

    Args:
        msg: The section title.
    """
    print()
    print(f"{BOLD}▸ {msg}{RESET}")


def log_step(msg: str) -> None:
    """Log an indented step message (2 spaces indent).

    Args:
        msg: The step message.
    """
    print(f"  {msg}")


# Formatting helper functions (pure functions, not logging)


def format_kv(key: str, value: str) -> str:
    """Format a key-value pair with 2 spaces indent.

    Args:
        key: The key name.
        value: The value.

    Returns:
        Formatted string "  {key}: {value}".
    """
    return f"  {key}: {value}"


def format_list_item(item: str, indent: int = 4) -> str:
    """Format a bulleted list item."""
    return f"{' ' * indent}- {item}"
