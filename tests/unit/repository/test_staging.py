"""Unit tests for StagingCoordinator and path normalization."""

import pytest
from structlog.typing import FilteringBoundLogger

from gitdesk.engine import FakeEngine, FakeRepositoryState
from gitdesk.enums import ChangeStatus, FileStatus
from gitdesk.exceptions import (
    InvalidArgumentError,
    NoOpenRepositoryError,
    UnderlyingEngineError,
)
from gitdesk.models import ChangeRecord
from gitdesk.repository import (
    ChangeClassifier,
    RepositoryManager,
    StagingCoordinator,
    normalize_path,
)


@pytest.fixture
def manager(
    engine: FakeEngine, fake_repo: FakeRepositoryState, logger: FilteringBoundLogger
) -> RepositoryManager:
    manager = RepositoryManager(engine, logger=logger)
    _ = manager.open(fake_repo.root)
    return manager


@pytest.fixture
def staging(manager: RepositoryManager, logger: FilteringBoundLogger) -> StagingCoordinator:
    return StagingCoordinator(manager, logger=logger)


@pytest.fixture
def classifier(manager: RepositoryManager, logger: FilteringBoundLogger) -> ChangeClassifier:
    return ChangeClassifier(manager, logger=logger)


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("file.txt", "file.txt"),
            ("src/app.py", "src/app.py"),
            ("./src//app.py", "src/app.py"),
            ("src\\app.py", "src/app.py"),
            ("src/", "src"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        ["", "   ", "/etc/passwd", "../outside.txt", "src/../../outside.txt", "C:\\x", "."],
    )
    def test_rejects(self, raw: str) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            _ = normalize_path(raw)

        assert exc_info.value.argument == "relative_path"

    def test_invalid_argument_is_a_value_error(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            _ = normalize_path("")


class TestStage:
    def test_moves_change_to_staged_partition(
        self,
        staging: StagingCoordinator,
        classifier: ChangeClassifier,
        fake_repo: FakeRepositoryState,
    ) -> None:
        fake_repo.status["app.py"] = FileStatus.MODIFIED_IN_WORKDIR

        staging.stage("app.py")

        changes = classifier.get_changes()
        assert changes.staged == (ChangeRecord("app.py", ChangeStatus.MODIFIED, is_staged=True),)
        assert changes.unstaged == ()

    def test_stages_deletion(
        self,
        staging: StagingCoordinator,
        classifier: ChangeClassifier,
        fake_repo: FakeRepositoryState,
    ) -> None:
        fake_repo.status["gone.txt"] = FileStatus.DELETED_FROM_WORKDIR

        staging.stage("gone.txt")

        assert classifier.get_changes().staged == (
            ChangeRecord("gone.txt", ChangeStatus.DELETED, is_staged=True),
        )

    def test_passes_normalized_path_to_engine(
        self,
        staging: StagingCoordinator,
        engine: FakeEngine,
        fake_repo: FakeRepositoryState,
    ) -> None:
        fake_repo.status["src/app.py"] = FileStatus.NEW_IN_WORKDIR

        staging.stage("./src\\app.py")

        assert ("stage", "src/app.py") in engine.calls

    @pytest.mark.parametrize("path", ["", "  "])
    def test_rejects_blank_path(self, staging: StagingCoordinator, path: str) -> None:
        with pytest.raises(InvalidArgumentError):
            staging.stage(path)

    def test_blank_path_checked_before_session(
        self, engine: FakeEngine, logger: FilteringBoundLogger
    ) -> None:
        staging = StagingCoordinator(RepositoryManager(engine, logger=logger), logger=logger)

        with pytest.raises(InvalidArgumentError):
            staging.stage(" ")

    def test_requires_open_repository(
        self, engine: FakeEngine, logger: FilteringBoundLogger
    ) -> None:
        staging = StagingCoordinator(RepositoryManager(engine, logger=logger), logger=logger)

        with pytest.raises(NoOpenRepositoryError):
            staging.stage("file.txt")

    def test_unknown_path_is_engine_error(self, staging: StagingCoordinator) -> None:
        with pytest.raises(UnderlyingEngineError) as exc_info:
            staging.stage("missing.txt")

        assert exc_info.value.operation == "stage"


class TestUnstage:
    @pytest.mark.parametrize(
        "flags",
        [
            FileStatus.NEW_IN_WORKDIR,
            FileStatus.MODIFIED_IN_WORKDIR,
            FileStatus.DELETED_FROM_WORKDIR,
        ],
    )
    def test_stage_then_unstage_restores_classification(
        self,
        staging: StagingCoordinator,
        classifier: ChangeClassifier,
        fake_repo: FakeRepositoryState,
        flags: FileStatus,
    ) -> None:
        fake_repo.status["file.txt"] = flags
        before = classifier.get_changes()

        staging.stage("file.txt")
        staging.unstage("file.txt")

        assert classifier.get_changes() == before

    def test_unstages_change_staged_elsewhere(
        self,
        staging: StagingCoordinator,
        classifier: ChangeClassifier,
        fake_repo: FakeRepositoryState,
    ) -> None:
        fake_repo.status["file.txt"] = FileStatus.MODIFIED_IN_INDEX

        staging.unstage("file.txt")

        assert classifier.get_changes().unstaged == (
            ChangeRecord("file.txt", ChangeStatus.MODIFIED, is_staged=False),
        )

    def test_requires_open_repository(
        self, engine: FakeEngine, logger: FilteringBoundLogger
    ) -> None:
        staging = StagingCoordinator(RepositoryManager(engine, logger=logger), logger=logger)

        with pytest.raises(NoOpenRepositoryError):
            staging.unstage("file.txt")

    def test_rejects_path_outside_repository(self, staging: StagingCoordinator) -> None:
        with pytest.raises(InvalidArgumentError):
            staging.unstage("../file.txt")
