"""Centralized logging configuration for reelsync.

This module provides consistent logging setup across the CLI, the REST API
and background render workers. Configuration respects environment variables
and provides sensible defaults for production and development.
"""

from __future__ import annotations

import logging
import os
import sys
import warnings
from typing import Literal

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# HTTP client internals log every request at INFO/DEBUG.
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "python_multipart", "multipart")


def _configure_third_party_log_levels(*, verbose: bool) -> None:
    """Set explicit levels for noisy third-party loggers.

    Args:
        verbose: When True, HTTP client loggers are allowed down to INFO so
            vendor round trips show up in ``--verbose`` output.
    """
    http_level = logging.INFO if verbose else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
    # Retry warnings are useful even in default mode.
    logging.getLogger("tenacity").setLevel(logging.WARNING)


def configure_logging(
    *,
    level: LogLevel | None = None,
    verbose: bool = False,
    quiet: bool = False,
    format_string: str | None = None,
) -> None:
    """Configure centralized logging for the application.

    This should be called once at application startup (CLI entry or API
    launch). ``REELSYNC_LOG_LEVEL`` is honoured when no explicit level and
    no verbosity flag is given.

    Args:
        level: Explicit log level (overrides verbose/quiet).
        verbose: Enable verbose logging (DEBUG level + HTTP client logs).
        quiet: Suppress all non-critical logs and Python warnings.
        format_string: Custom log format (uses default if None).

    Examples:
        >>> # CLI verbose mode
        >>> configure_logging(verbose=True)

        >>> # API debug mode
        >>> configure_logging(level="DEBUG")

        >>> # Production quiet mode
        >>> configure_logging(quiet=True)
    """
    if level is not None:
        log_level = getattr(logging, level.upper())
    elif verbose:
        log_level = logging.DEBUG
    elif quiet:
        log_level = logging.CRITICAL
    else:
        env_level = os.getenv("REELSYNC_LOG_LEVEL", "INFO").upper()
        log_level = getattr(logging, env_level, logging.INFO)

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,  # Reconfigure even if already configured
    )
    _configure_third_party_log_levels(verbose=verbose)

    if quiet:
        warnings.filterwarnings("ignore")
        return

    logger = logging.getLogger(__name__)
    logger.debug("Logging configured: level=%s", logging.getLevelName(log_level))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ of calling module).

    Returns:
        Configured logger instance.

    Examples:
        >>> logger = get_logger(__name__)
        >>> logger.info("Render started")
    """
    return logging.getLogger(name)
