from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest
from dulwich.repo import Repo
from structlog.typing import FilteringBoundLogger

from gitdesk.config import Config
from gitdesk.engine import DulwichEngine
from gitdesk.workspace import Workspace


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


def _set_git_identity(root: Path, name: str, email: str | None = None) -> None:
    repo = Repo(str(root))
    try:
        config = repo.get_config()
        config.set((b"user",), b"name", name.encode())
        if email is not None:
            config.set((b"user",), b"email", email.encode())
        config.write_to_path()
    finally:
        repo.close()


@pytest.fixture
def make_workspace(
    logger: FilteringBoundLogger, fixed_clock: Callable[[], datetime]
) -> Callable[..., Workspace]:
    """Return a factory for Workspaces backed by dulwich."""

    def _make(config: Config | None = None) -> Workspace:
        return Workspace(DulwichEngine(), config=config, logger=logger, clock=fixed_clock)

    return _make


@pytest.fixture
def workspace(make_workspace: Callable[..., Workspace], tmp_path: Path) -> Workspace:
    """Workspace with a freshly created repository open."""
    workspace = make_workspace()
    _ = workspace.create_or_open(tmp_path / "repo")
    return workspace


@pytest.fixture
def set_git_identity() -> Callable[..., None]:
    """Return a helper that writes ``user.name`` and ``user.email`` to a repository's config."""
    return _set_git_identity
