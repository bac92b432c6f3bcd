"""Workspace facade.

A Workspace wires the orchestration components around one engine and is the
object a presentation layer holds. Each request delegates to a coordinator,
returns a plain snapshot, and on success appends a human-readable entry to
the operation log. A request that raises leaves the log untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from gitdesk.config import Config
from gitdesk.engine import DulwichEngine
from gitdesk.oplog import OperationLog
from gitdesk.repository import (
    BranchCoordinator,
    ChangeClassifier,
    CommitService,
    RepositoryManager,
    StagingCoordinator,
    normalize_path,
)
from gitdesk.utils import create_logger, short_id

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from gitdesk.engine import VersionControlEngine
    from gitdesk.models import BranchRecord, Changes, CommitRecord, MergeOutcome

NO_BRANCH: Final = "<none>"


class Workspace:
    """Orchestration facade over one repository session.

    Attributes:
        config: Effective configuration.
        log: User-facing operation log.
        manager: Session owner.
        classifier: Change classifier.
        staging: Staging coordinator.
        commits: Commit service.
        branches: Branch coordinator.

    Example:
        >>> workspace = Workspace()
        >>> workspace.create_or_open(Path("/tmp/project"))
        True
        >>> workspace.log.last_lines(1)
        '09:30:00 – Found 1 branches. Current: main'
    """

    def __init__(
        self,
        engine: VersionControlEngine | None = None,
        *,
        config: Config | None = None,
        logger: FilteringBoundLogger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the workspace.

        Args:
            engine: Storage engine. Defaults to ``DulwichEngine()``.
            config: Configuration. Defaults to ``Config()``.
            logger: Diagnostic logger. Defaults to one built from
                ``config.logging``.
            clock: Clock for operation log timestamps.
        """
        self.config: Config = config or Config()
        if logger is None:
            logger = create_logger(
                level=self.config.logging.level.value,
                log_format=self.config.logging.format.value,
                log_file=self.config.logging.file,
                max_bytes=self.config.logging.max_bytes,
                backup_count=self.config.logging.backup_count,
            )
        self._logger: FilteringBoundLogger = logger

        oplog_options: dict[str, Callable[[], datetime]] = {}
        if clock is not None:
            oplog_options["clock"] = clock
        self.log: OperationLog = OperationLog(
            max_chars=self.config.oplog.max_chars,
            max_lines=self.config.oplog.max_lines,
            **oplog_options,
        )

        self.manager: RepositoryManager = RepositoryManager(
            engine or DulwichEngine(),
            config=self.config.repository,
            identity_config=self.config.identity,
            logger=logger,
        )
        self.classifier: ChangeClassifier = ChangeClassifier(self.manager, logger=logger)
        self.staging: StagingCoordinator = StagingCoordinator(self.manager, logger=logger)
        self.commits: CommitService = CommitService(
            self.manager,
            self.classifier,
            identity_config=self.config.identity,
            logger=logger,
        )
        self.branches: BranchCoordinator = BranchCoordinator(
            self.manager, self.classifier, self.commits, logger=logger
        )

    # -------------------------------------------------------------------------
    # Repository Lifecycle
    # -------------------------------------------------------------------------

    def open(self, path: Path) -> bool:
        """Open an existing repository, then load its history and branches."""
        _ = self.manager.open(path)
        self.log.append(f"Opened existing repo at '{self.manager.root}'.")
        self._refresh()
        return True

    def create_or_open(self, path: Path) -> bool:
        """Open or create a repository, then load its history and branches.

        Returns:
            True if a new repository was initialized.
        """
        created = self.manager.create_or_open(path)
        self.log.append(f"Created (or opened) repo at '{self.manager.root}'.")
        self._refresh()
        return created

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def load_commits(self, max_count: int | None = None) -> tuple[CommitRecord, ...]:
        commits = self.manager.get_commit_log(max_count)
        self.log.append(f"Loaded {len(commits)} commits.")
        return commits

    def load_branches(self) -> tuple[BranchRecord, ...]:
        branches = self.branches.list_branches()
        current = next((b.name for b in branches if b.is_current), NO_BRANCH)
        self.log.append(f"Found {len(branches)} branches. Current: {current}")
        return branches

    def get_changes(self) -> Changes:
        return self.classifier.get_changes()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def stage(self, relative_path: str) -> None:
        self.staging.stage(relative_path)
        self.log.append(f"Staged '{normalize_path(relative_path)}'.")

    def unstage(self, relative_path: str) -> None:
        self.staging.unstage(relative_path)
        self.log.append(f"Unstaged '{normalize_path(relative_path)}'.")

    def commit(self, message: str) -> CommitRecord:
        record = self.commits.commit(message)
        self.log.append(f"Committed {short_id(record.id)}: {record.short_message}")
        _ = self.load_commits()
        return record

    def checkout(self, name: str) -> None:
        self.branches.checkout(name)
        self.log.append(f"Checked out branch '{name.strip()}'.")
        self._refresh(commits_first=False)

    def create_branch(self, name: str) -> str:
        ref = self.branches.create_branch(name)
        self.log.append(f"Created and checked out new branch '{name.strip()}'.")
        _ = self.load_branches()
        return ref

    def merge(self, source_name: str) -> MergeOutcome:
        """Merge a branch into the current branch and log what happened."""
        outcome = self.branches.merge(source_name)
        name = source_name.strip()
        if outcome.up_to_date:
            self.log.append(f"Branch '{name}' is already merged.")
        elif outcome.has_conflicts:
            self.log.append(
                f"Merge of '{name}' stopped with {len(outcome.conflicts)} conflicts: "
                + ", ".join(outcome.conflicts)
            )
        else:
            self.log.append(f"Merged branch '{name}' into current.")
        self._refresh(commits_first=False)
        return outcome

    def clear_log(self) -> None:
        self.log.clear()

    def _refresh(self, *, commits_first: bool = True) -> None:
        if commits_first:
            _ = self.load_commits()
            _ = self.load_branches()
        else:
            _ = self.load_branches()
            _ = self.load_commits()
