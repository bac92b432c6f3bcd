from collections.abc import Callable

import pytest
from rich.console import Console

from gitdesk.cli import create_app


@pytest.fixture
def gitdesk_cli(console: Console) -> Callable[..., int]:
    """Create the CLI app for testing.

    Returns a callable that runs the CLI and returns the exit code
    (0 if no SystemExit was raised).
    """
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app(args)
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run
