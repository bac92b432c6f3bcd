"""The command-line interface for gitdesk."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from gitdesk.config import load_config
from gitdesk.exceptions import ConfigError
from gitdesk.utils import create_logger

from ._commands import register_commands
from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

_HELP = "Manage a local git working copy: history, branches, staging, commits."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the gitdesk application.

    Args:
        console: Console for cyclopts help output.
        error_console: Console for cyclopts parse errors.
        exit_on_error: Exit on parse errors instead of raising.

    Returns:
        The meta app, which handles ``--repo`` and ``--config`` before
        dispatching to a command.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="gitdesk",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        repo: Annotated[
            Path | None,
            Parameter(name="--repo", help="Working-copy root (default: current directory)"),
        ] = None,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
    ) -> None:
        """Launch gitdesk with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            repo: Working-copy root.
            config: Explicit path to config file.
        """
        try:
            loaded_config = load_config(config_path=config)
        except (ConfigError, FileNotFoundError) as e:
            exit_with_error(str(e), ExitCode.CONFIG_ERROR)

        logger = create_logger(
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,
            log_file=loaded_config.logging.file,
            max_bytes=loaded_config.logging.max_bytes,
            backup_count=loaded_config.logging.backup_count,
        )
        ctx = CLIContext(
            config=loaded_config,
            repo=repo if repo is not None else Path.cwd(),
            logger=logger,
        )
        CLIContext.set_current(ctx)

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app.meta


def main() -> None:
    """Default entrypoint for the `gitdesk` CLI."""
    app = create_app()
    app()
