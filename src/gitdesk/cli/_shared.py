"""Shared CLI utilities for commands.

- Standardized exit codes
- Mapping from gitdesk errors to exit codes
- Console utilities for error handling
"""

from __future__ import annotations

from enum import IntEnum
from typing import Never

from rich.console import Console
from rich.markup import escape

from gitdesk.exceptions import (
    BranchNotFoundError,
    ConfigError,
    DirtyWorkingTreeError,
    GitDeskError,
    InvalidArgumentError,
    NoOpenRepositoryError,
    NotARepositoryError,
    UnderlyingEngineError,
)

__all__ = [
    "ExitCode",
    "exit_code_for",
    "exit_with_error",
    "get_console",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Standard exit codes for gitdesk CLI commands."""

    SUCCESS = 0
    ENGINE_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    CONFIG_ERROR = 4
    DIRTY_WORKING_TREE = 5
    INTERNAL_ERROR = 6


_EXIT_CODES: tuple[tuple[type[GitDeskError], ExitCode], ...] = (
    (InvalidArgumentError, ExitCode.VALIDATION_ERROR),
    (NotARepositoryError, ExitCode.NOT_FOUND),
    (NoOpenRepositoryError, ExitCode.NOT_FOUND),
    (BranchNotFoundError, ExitCode.NOT_FOUND),
    (DirtyWorkingTreeError, ExitCode.DIRTY_WORKING_TREE),
    (ConfigError, ExitCode.CONFIG_ERROR),
    (UnderlyingEngineError, ExitCode.ENGINE_ERROR),
)


def exit_code_for(error: GitDeskError) -> ExitCode:
    """Map an error to the exit code reported for it."""
    for error_type, code in _EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return ExitCode.INTERNAL_ERROR


def get_console() -> Console:
    """Get a Rich console for standard output.

    Soft wrapping keeps long paths on one line.
    """
    return Console(soft_wrap=True)


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr."""
    return Console(stderr=True, soft_wrap=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to INTERNAL_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {escape(message)}")
    raise SystemExit(code)
