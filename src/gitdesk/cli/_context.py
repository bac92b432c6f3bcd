# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

The CLIContext is set once per invocation by the meta app and made available
to all commands via contextvars.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from gitdesk.config import Config

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

_current_cli_context: contextvars.ContextVar[CLIContext | None] = contextvars.ContextVar(
    "cli_context", default=None
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI options and loaded configuration.

    Attributes:
        config: Loaded configuration.
        repo: Working-copy root the command operates on.
        logger: Diagnostic logger, or None to build one from ``config``.
    """

    config: Config = field(default_factory=Config, repr=False)
    repo: Path = field(default_factory=Path.cwd)
    logger: FilteringBoundLogger | None = field(default=None, repr=False)

    @classmethod
    def get_current(cls) -> CLIContext:
        """Get the active CLIContext, or a default one if none is set."""
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx
        return cls()

    @classmethod
    def set_current(cls, ctx: CLIContext) -> None:
        _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        _current_cli_context.set(None)
