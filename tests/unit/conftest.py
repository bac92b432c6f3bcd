from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest
from structlog.typing import FilteringBoundLogger

from gitdesk.config import Config
from gitdesk.engine import FakeEngine, FakeRepositoryState
from gitdesk.workspace import Workspace


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    """Resolved directory for a fake repository."""
    root = (tmp_path / "project").resolve()
    root.mkdir()
    return root


@pytest.fixture
def fake_repo(engine: FakeEngine, repo_root: Path) -> FakeRepositoryState:
    """Fake repository on ``main`` with one commit."""
    state = engine.add_repository(repo_root)
    _ = engine.add_commit(state, "Initial commit")
    return state


@pytest.fixture
def make_workspace(
    engine: FakeEngine,
    logger: FilteringBoundLogger,
    fixed_clock: Callable[[], datetime],
) -> Callable[..., Workspace]:
    """Return a factory for Workspaces backed by the fake engine."""

    def _make(config: Config | None = None) -> Workspace:
        return Workspace(engine, config=config, logger=logger, clock=fixed_clock)

    return _make
