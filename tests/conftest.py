"""Shared test fixtures for gitdesk tests."""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest
from rich.console import Console
from structlog.typing import FilteringBoundLogger

from gitdesk.utils import create_logger

FIXED_TIME = datetime(2024, 5, 17, 9, 30, 15)

_CLEARED_ENV = (
    "GIT_CONFIG_GLOBAL",
    "GIT_AUTHOR_NAME",
    "GIT_AUTHOR_EMAIL",
    "GIT_COMMITTER_NAME",
    "GIT_COMMITTER_EMAIL",
    "GITDESK_LOG_LEVEL",
    "GITDESK_LOG_FORMAT",
    "GITDESK_LOG_FILE",
    "GITDESK_DEBUG",
)


@pytest.fixture(autouse=True)
def isolated_git_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Keep the developer's git and gitdesk configuration out of tests.

    HOME and XDG_CONFIG_HOME point at an empty directory, the system git
    config is disabled, and GITDESK_* variables are removed.
    """
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for name in _CLEARED_ENV:
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def logger() -> FilteringBoundLogger:
    """Logger that only reports errors, to keep test output quiet."""
    return create_logger(level="error")


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_TIME


@pytest.fixture
def write_file() -> Callable[[Path, str, str], Path]:
    """Return a helper that writes a file below a root, creating parents."""

    def _write(root: Path, relative: str, content: str = "content\n") -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def console() -> Console:
    return Console(
        width=120,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
