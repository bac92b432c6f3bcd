"""Unit tests for CommitService."""

import pytest
from structlog.typing import FilteringBoundLogger

from gitdesk.config import IdentityConfig
from gitdesk.engine import FakeEngine, FakeRepositoryState
from gitdesk.enums import FileStatus
from gitdesk.exceptions import (
    InvalidArgumentError,
    NoOpenRepositoryError,
    UnderlyingEngineError,
)
from gitdesk.models import Identity
from gitdesk.repository import ChangeClassifier, CommitService, RepositoryManager


def _service(
    manager: RepositoryManager,
    logger: FilteringBoundLogger,
    identity_config: IdentityConfig | None = None,
) -> CommitService:
    classifier = ChangeClassifier(manager, logger=logger)
    return CommitService(
        manager, classifier, identity_config=identity_config, logger=logger
    )


@pytest.fixture
def manager(
    engine: FakeEngine, fake_repo: FakeRepositoryState, logger: FilteringBoundLogger
) -> RepositoryManager:
    manager = RepositoryManager(engine, logger=logger)
    _ = manager.open(fake_repo.root)
    return manager


@pytest.fixture
def service(manager: RepositoryManager, logger: FilteringBoundLogger) -> CommitService:
    return _service(manager, logger)


@pytest.fixture
def staged_repo(fake_repo: FakeRepositoryState) -> FakeRepositoryState:
    fake_repo.status["app.py"] = FileStatus.MODIFIED_IN_INDEX
    return fake_repo


class TestResolveIdentity:
    def test_falls_back_when_unconfigured(self, service: CommitService) -> None:
        assert service.resolve_identity() == Identity("Unknown", "unknown@example.com")

    def test_reads_repository_configuration(
        self, service: CommitService, fake_repo: FakeRepositoryState
    ) -> None:
        fake_repo.config.update({"user.name": "Ada Lovelace", "user.email": "ada@example.com"})

        assert service.resolve_identity() == Identity("Ada Lovelace", "ada@example.com")

    def test_name_and_email_fall_back_independently(
        self, service: CommitService, fake_repo: FakeRepositoryState
    ) -> None:
        fake_repo.config["user.name"] = "Ada Lovelace"

        assert service.resolve_identity() == Identity("Ada Lovelace", "unknown@example.com")

    def test_blank_values_fall_back(
        self, service: CommitService, fake_repo: FakeRepositoryState
    ) -> None:
        fake_repo.config.update({"user.name": "   ", "user.email": "ada@example.com"})

        assert service.resolve_identity() == Identity("Unknown", "ada@example.com")

    def test_configurable_fallback(
        self, manager: RepositoryManager, logger: FilteringBoundLogger
    ) -> None:
        service = _service(
            manager,
            logger,
            IdentityConfig(fallback_name="Robot", fallback_email="robot@example.com"),
        )

        assert str(service.resolve_identity()) == "Robot <robot@example.com>"

    def test_requires_open_repository(
        self, engine: FakeEngine, logger: FilteringBoundLogger
    ) -> None:
        service = _service(RepositoryManager(engine, logger=logger), logger)

        with pytest.raises(NoOpenRepositoryError):
            _ = service.resolve_identity()


class TestCommit:
    def test_returns_new_head_commit(
        self, service: CommitService, staged_repo: FakeRepositoryState
    ) -> None:
        record = service.commit("fix bug\n\nLonger explanation")

        assert record.short_message == "fix bug"
        assert record.id == staged_repo.head
        assert len(record.id) == 40

    def test_unconfigured_author_is_unknown(
        self, service: CommitService, staged_repo: FakeRepositoryState
    ) -> None:
        _ = staged_repo

        assert service.commit("fix bug").author_name == "Unknown"

    def test_uses_configured_author(
        self, service: CommitService, staged_repo: FakeRepositoryState
    ) -> None:
        staged_repo.config["user.name"] = "Grace Hopper"

        assert service.commit("fix bug").author_name == "Grace Hopper"

    def test_advances_current_branch(
        self, service: CommitService, staged_repo: FakeRepositoryState
    ) -> None:
        previous = staged_repo.head

        record = service.commit("fix bug")

        assert staged_repo.branches["main"] == record.id != previous
        assert staged_repo.commits[record.id][1] == (previous,)

    def test_clears_staged_changes(
        self, service: CommitService, staged_repo: FakeRepositoryState
    ) -> None:
        _ = service.commit("fix bug")

        assert staged_repo.status == {}

    @pytest.mark.parametrize("message", ["", "   ", "\n\t"])
    def test_rejects_blank_message(
        self, service: CommitService, staged_repo: FakeRepositoryState, message: str
    ) -> None:
        head = staged_repo.head

        with pytest.raises(InvalidArgumentError) as exc_info:
            _ = service.commit(message)

        assert exc_info.value.argument == "message"
        assert staged_repo.head == head

    def test_requires_open_repository(
        self, engine: FakeEngine, logger: FilteringBoundLogger
    ) -> None:
        service = _service(RepositoryManager(engine, logger=logger), logger)

        with pytest.raises(NoOpenRepositoryError):
            _ = service.commit("fix bug")

    def test_nothing_staged_is_engine_error(self, service: CommitService) -> None:
        with pytest.raises(UnderlyingEngineError, match="Nothing to commit"):
            _ = service.commit("fix bug")

    def test_unresolved_conflicts_block_commit(
        self, service: CommitService, staged_repo: FakeRepositoryState
    ) -> None:
        staged_repo.status["clash.txt"] = FileStatus.CONFLICTED

        with pytest.raises(UnderlyingEngineError, match="conflicts"):
            _ = service.commit("fix bug")


class TestCanCommit:
    def test_true_with_message_and_staged_changes(
        self, service: CommitService, staged_repo: FakeRepositoryState
    ) -> None:
        _ = staged_repo

        assert service.can_commit("fix bug")

    def test_false_without_staged_changes(
        self, service: CommitService, fake_repo: FakeRepositoryState
    ) -> None:
        fake_repo.status["app.py"] = FileStatus.MODIFIED_IN_WORKDIR

        assert not service.can_commit("fix bug")

    def test_false_with_blank_message(
        self, service: CommitService, staged_repo: FakeRepositoryState
    ) -> None:
        _ = staged_repo

        assert not service.can_commit("  ")

    def test_false_without_session(
        self, engine: FakeEngine, logger: FilteringBoundLogger
    ) -> None:
        service = _service(RepositoryManager(engine, logger=logger), logger)

        assert not service.can_commit("fix bug")
