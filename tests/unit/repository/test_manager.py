"""Unit tests for RepositoryManager."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from structlog.typing import FilteringBoundLogger

from gitdesk.config import RepositoryConfig
from gitdesk.engine import FakeEngine, FakeRepositoryState
from gitdesk.exceptions import (
    InvalidArgumentError,
    NoOpenRepositoryError,
    NotARepositoryError,
    UnderlyingEngineError,
)
from gitdesk.repository import INITIAL_COMMIT_MESSAGE, RepositoryManager

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture
def manager(engine: FakeEngine, logger: FilteringBoundLogger) -> RepositoryManager:
    return RepositoryManager(engine, logger=logger)


class TestSessionState:
    def test_starts_closed(self, manager: RepositoryManager) -> None:
        assert not manager.is_open

    def test_require_session_raises_when_closed(self, manager: RepositoryManager) -> None:
        with pytest.raises(NoOpenRepositoryError, match="No repository is open"):
            _ = manager.require_session()

    def test_root_raises_when_closed(self, manager: RepositoryManager) -> None:
        with pytest.raises(NoOpenRepositoryError):
            _ = manager.root

    def test_get_commit_log_raises_when_closed(self, manager: RepositoryManager) -> None:
        with pytest.raises(NoOpenRepositoryError):
            _ = manager.get_commit_log()


class TestOpen:
    def test_opens_existing_repository(
        self, manager: RepositoryManager, fake_repo: FakeRepositoryState
    ) -> None:
        assert manager.open(fake_repo.root) is True

        assert manager.is_open
        assert manager.root == fake_repo.root
        assert manager.require_session().handle is fake_repo

    def test_rejects_directory_without_repository(
        self, manager: RepositoryManager, tmp_path: Path
    ) -> None:
        with pytest.raises(NotARepositoryError) as exc_info:
            _ = manager.open(tmp_path)

        assert exc_info.value.path == tmp_path.resolve()
        assert not manager.is_open

    def test_failed_open_keeps_previous_session(
        self, manager: RepositoryManager, fake_repo: FakeRepositoryState, tmp_path: Path
    ) -> None:
        _ = manager.open(fake_repo.root)

        with pytest.raises(NotARepositoryError):
            _ = manager.open(tmp_path / "elsewhere")

        assert manager.root == fake_repo.root

    def test_opening_another_repository_closes_previous_handle(
        self,
        manager: RepositoryManager,
        engine: FakeEngine,
        fake_repo: FakeRepositoryState,
        tmp_path: Path,
    ) -> None:
        other = engine.add_repository((tmp_path / "other").resolve())
        _ = manager.open(fake_repo.root)

        _ = manager.open(other.root)

        assert fake_repo.closed
        assert not other.closed
        assert manager.root == other.root


class TestCreateOrOpen:
    def test_creates_directory_and_repository(
        self, manager: RepositoryManager, engine: FakeEngine, tmp_path: Path
    ) -> None:
        target = tmp_path / "new" / "nested"

        assert manager.create_or_open(target) is True

        root = target.resolve()
        assert root.is_dir()
        assert root in engine.repositories
        assert manager.root == root

    def test_new_repository_gets_placeholder_commit(
        self, manager: RepositoryManager, engine: FakeEngine, tmp_path: Path
    ) -> None:
        _ = manager.create_or_open(tmp_path / "project")

        state = engine.repositories[manager.root]
        assert (manager.root / "README.md").read_text(encoding="utf-8") == "# project\n"
        assert list(state.branches) == ["main"]
        commits = manager.get_commit_log()
        assert len(commits) == 1
        assert commits[0].short_message == INITIAL_COMMIT_MESSAGE
        assert commits[0].author_name == "Unknown"
        assert state.status == {}

    def test_existing_placeholder_file_is_kept(
        self, manager: RepositoryManager, tmp_path: Path
    ) -> None:
        target = tmp_path / "project"
        target.mkdir()
        _ = (target / "README.md").write_text("hello\n", encoding="utf-8")

        _ = manager.create_or_open(target)

        assert (target / "README.md").read_text(encoding="utf-8") == "hello\n"
        assert len(manager.get_commit_log()) == 1

    def test_placeholder_commit_can_be_disabled(
        self, engine: FakeEngine, logger: FilteringBoundLogger, tmp_path: Path
    ) -> None:
        manager = RepositoryManager(
            engine, config=RepositoryConfig(placeholder_commit=False), logger=logger
        )

        _ = manager.create_or_open(tmp_path / "bare-start")

        assert manager.get_commit_log() == ()
        assert not (manager.root / "README.md").exists()

    def test_uses_configured_default_branch(
        self, engine: FakeEngine, logger: FilteringBoundLogger, tmp_path: Path
    ) -> None:
        manager = RepositoryManager(
            engine, config=RepositoryConfig(default_branch="trunk"), logger=logger
        )

        _ = manager.create_or_open(tmp_path / "project")

        state = engine.repositories[manager.root]
        assert state.current == "trunk"
        assert list(state.branches) == ["trunk"]

    def test_opens_existing_repository_without_writing(
        self,
        manager: RepositoryManager,
        engine: FakeEngine,
        fake_repo: FakeRepositoryState,
    ) -> None:
        commits_before = dict(fake_repo.commits)

        assert manager.create_or_open(fake_repo.root) is False

        assert fake_repo.commits == commits_before
        assert ("init", str(fake_repo.root)) not in engine.calls
        assert not (fake_repo.root / "README.md").exists()

    def test_is_idempotent(self, manager: RepositoryManager, tmp_path: Path) -> None:
        target = tmp_path / "project"

        assert manager.create_or_open(target) is True
        assert manager.create_or_open(target) is False
        assert len(manager.get_commit_log()) == 1

    def test_failed_placeholder_commit_closes_handle(
        self,
        manager: RepositoryManager,
        engine: FakeEngine,
        tmp_path: Path,
        mocker: MockerFixture,
    ) -> None:
        _ = mocker.patch.object(
            FakeEngine,
            "commit",
            side_effect=UnderlyingEngineError("boom", operation="commit"),
        )

        with pytest.raises(UnderlyingEngineError, match="boom"):
            _ = manager.create_or_open(tmp_path / "project")

        assert not manager.is_open
        assert engine.repositories[(tmp_path / "project").resolve()].closed


class TestGetCommitLog:
    @pytest.fixture
    def history(
        self, engine: FakeEngine, fake_repo: FakeRepositoryState
    ) -> FakeRepositoryState:
        for message in ("Second", "Third\n\nWith a body"):
            _ = engine.add_commit(fake_repo, message)
        return fake_repo

    def test_newest_first(
        self, manager: RepositoryManager, history: FakeRepositoryState
    ) -> None:
        _ = manager.open(history.root)

        messages = [c.short_message for c in manager.get_commit_log()]

        assert messages == ["Third", "Second", "Initial commit"]

    def test_respects_max_count(
        self, manager: RepositoryManager, history: FakeRepositoryState
    ) -> None:
        _ = manager.open(history.root)

        assert len(manager.get_commit_log(2)) == 2

    def test_default_limit_comes_from_config(
        self,
        engine: FakeEngine,
        history: FakeRepositoryState,
        logger: FilteringBoundLogger,
    ) -> None:
        manager = RepositoryManager(
            engine, config=RepositoryConfig(commit_log_limit=1), logger=logger
        )
        _ = manager.open(history.root)

        assert [c.short_message for c in manager.get_commit_log()] == ["Third"]

    @pytest.mark.parametrize("max_count", [0, -5])
    def test_rejects_non_positive_max_count(
        self, manager: RepositoryManager, history: FakeRepositoryState, max_count: int
    ) -> None:
        _ = manager.open(history.root)

        with pytest.raises(InvalidArgumentError) as exc_info:
            _ = manager.get_commit_log(max_count)

        assert exc_info.value.argument == "max_count"

    def test_unborn_branch_has_no_commits(
        self, manager: RepositoryManager, engine: FakeEngine, tmp_path: Path
    ) -> None:
        state = engine.add_repository((tmp_path / "empty").resolve())
        _ = manager.open(state.root)

        assert manager.get_commit_log() == ()
