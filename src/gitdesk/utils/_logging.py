"""Logging utilities for gitdesk.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted diagnostic logs to a file or to stderr.
Each logger is self-contained and does not modify global structlog
configuration.

These loggers are for diagnostics. The user-facing activity log lives in
``gitdesk.oplog``.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

# Default level when neither configuration nor environment says otherwise
_DEFAULT_LEVEL = "warning"


def _log_level_from_string(level: str | None, *, respect_env: bool = True) -> int:
    """Convert a log level string to a logging level integer.

    Resolution order:
    1. GITDESK_DEBUG environment variable (if set, DEBUG)
    2. The ``level`` argument
    3. GITDESK_LOG_LEVEL environment variable
    4. WARNING

    Args:
        level: Log level string (debug, info, warning, error), or None.
        respect_env: If True, environment variables are consulted.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("GITDESK_DEBUG", None):
        return logging.DEBUG

    if level is None:
        level = getenv("GITDESK_LOG_LEVEL", _DEFAULT_LEVEL) if respect_env else _DEFAULT_LEVEL

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.WARNING)


def create_logger(
    *,
    level: str | None = None,
    log_format: LogFormatType = "text",
    log_file: str = "",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    Args:
        level: Log level threshold (debug, info, warning, error). Falls back
            to GITDESK_LOG_LEVEL, then WARNING. GITDESK_DEBUG forces DEBUG.
        log_format: Output format, either "json" or "text".
        log_file: Path to a log file (opened in append mode). Empty writes
            to stderr.
        max_bytes: Maximum size in bytes before rotation. Must be set with
            backup_count, and a log_file, for rotation to be enabled.
        backup_count: Number of rotated log files to keep.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = _log_level_from_string(level)

    stdlib_logger: logging.Logger | None = None
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        if max_bytes is not None and backup_count is not None:
            stdlib_logger = logging.getLogger(f"gitdesk.{log_path.stem}.{id(log_path)}")
            stdlib_logger.handlers.clear()
            stdlib_logger.propagate = False
            stdlib_logger.setLevel(effective_level)

            handler = RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            handler.setLevel(effective_level)
            handler.setFormatter(logging.Formatter("%(message)s"))
            stdlib_logger.addHandler(handler)
            raw_logger: object = stdlib_logger
        else:
            raw_logger = structlog.WriteLoggerFactory(file=log_path.open("a"))()
    else:
        raw_logger = structlog.PrintLoggerFactory(file=sys.stderr)()

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def get_default_logger() -> "FilteringBoundLogger":  # noqa: UP037
    """Create the stderr logger used when no logger is injected."""
    return create_logger()
