"""Logging utilities with rich console output.

All trackit loggers hang off the ``trackit`` package logger, which owns
the single rich handler. Records still propagate to the root logger so
test frameworks (pytest caplog) can capture them.

Usage:
    from trackit.logger import get_logger

    logger = get_logger(__name__)
    logger.debug("Stored object %s", fingerprint)
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

PACKAGE_LOGGER = "trackit"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Shared consoles so log lines and command output interleave correctly
console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        handler = RichHandler(
            console=console,
            show_time=False,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(logging.Formatter(fmt="%(message)s"))
        logger.addHandler(handler)
        env_level = os.getenv("LOG_LEVEL", "INFO").upper()
        logger.setLevel(env_level if env_level in LOG_LEVELS else "INFO")
        logger.propagate = True
    return logger


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a logger wired to the rich console.

    Args:
        name: Logger name (typically ``__name__``).
        level: Logging level name. If None, the logger inherits the
            package level (``LOG_LEVEL`` environment variable, else INFO).

    Returns:
        Configured logger instance.
    """
    _package_logger()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.upper())
    return logger


def setup_logging(level: str | None = None) -> None:
    """Set the trackit log level once at the CLI entry point.

    Falls back to ``LOG_LEVEL`` in the environment, then INFO.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    _package_logger().setLevel(level)


def success(message: str) -> None:
    """Print a success line with a green checkmark."""
    console.print(Text.assemble(("✓", "green"), " ", message))


def error(message: str) -> None:
    """Print an error line with a red cross to stderr."""
    err_console.print(Text.assemble(("✗", "red"), " ", message))
