"""Branch listing, switching, creation and merging."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from gitdesk.exceptions import (
    BranchNotFoundError,
    DirtyWorkingTreeError,
    GitDeskError,
    InvalidArgumentError,
)
from gitdesk.models import BranchRecord
from gitdesk.utils import get_default_logger, short_id

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from gitdesk.models import BranchInfo, MergeOutcome

    from ._classifier import ChangeClassifier
    from ._commit import CommitService
    from ._manager import RepositoryManager


def _require_name(name: str, argument: str) -> str:
    if not name or not name.strip():
        msg = f"{argument.replace('_', ' ').capitalize()} must not be empty"
        raise InvalidArgumentError(msg, argument=argument)
    return name.strip()


class BranchCoordinator:
    """Coordinates branch operations on the open repository.

    Checkout refuses to run over uncommitted work: any staged or unstaged
    change, untracked files included, blocks the switch. Creating a branch
    carries the working copy along and needs no such guard.
    """

    __slots__: Final = ("_classifier", "_commits", "_logger", "_manager")

    def __init__(
        self,
        manager: RepositoryManager,
        classifier: ChangeClassifier,
        commits: CommitService,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            manager: Manager owning the session.
            classifier: Classifier consulted by the checkout guard.
            commits: Service resolving the identity merges are recorded with.
            logger: Diagnostic logger. Defaults to a stderr logger.
        """
        self._manager: RepositoryManager = manager
        self._classifier: ChangeClassifier = classifier
        self._commits: CommitService = commits
        self._logger: FilteringBoundLogger = logger or get_default_logger()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_branches(self) -> tuple[BranchRecord, ...]:
        """List local branches sorted by name.

        Raises:
            NoOpenRepositoryError: If no repository is open.
        """
        records = [
            BranchRecord(name=info.name, is_current=info.is_current, tip_id=short_id(info.tip_id))
            for info in self._branch_infos()
        ]
        return tuple(sorted(records, key=lambda r: r.name))

    def current_branch(self) -> str | None:
        """Name of the checked-out branch, None if HEAD is unborn or detached.

        Raises:
            NoOpenRepositoryError: If no repository is open.
        """
        for info in self._branch_infos():
            if info.is_current:
                return info.name
        return None

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def checkout(self, name: str) -> None:
        """Switch the working copy to an existing branch.

        Args:
            name: Branch to check out.

        Raises:
            InvalidArgumentError: If ``name`` is blank.
            NoOpenRepositoryError: If no repository is open.
            DirtyWorkingTreeError: If there are staged or unstaged changes.
            BranchNotFoundError: If no branch is named ``name``.
            UnderlyingEngineError: If the engine fails to switch.
        """
        name = _require_name(name, "branch_name")
        session = self._manager.require_session()

        changes = self._classifier.get_changes()
        if not changes.is_clean:
            msg = (
                f"Cannot switch to '{name}': {len(changes.staged)} staged and "
                f"{len(changes.unstaged)} unstaged changes. Commit or discard them first."
            )
            raise DirtyWorkingTreeError(
                msg, staged=len(changes.staged), unstaged=len(changes.unstaged)
            )

        self._require_branch(name)
        self._manager.engine.checkout(session.handle, name)
        self._logger.info("branch_checked_out", branch=name)

    def create_branch(self, name: str) -> str:
        """Create a branch at the current tip and check it out.

        Args:
            name: New branch name.

        Returns:
            Full reference name of the new branch.

        Raises:
            InvalidArgumentError: If ``name`` is blank.
            NoOpenRepositoryError: If no repository is open.
            UnderlyingEngineError: If the name is taken or invalid, or
                there is no commit to branch from.
        """
        name = _require_name(name, "branch_name")
        session = self._manager.require_session()
        ref = self._manager.engine.create_branch(session.handle, name)
        self._logger.info("branch_created", branch=name, ref=ref)
        return ref

    def merge(self, source_name: str) -> MergeOutcome:
        """Merge a branch into the current branch.

        Conflicts are left in place: the affected paths classify as
        ``CONFLICTED`` until resolved, staged and committed.

        Args:
            source_name: Branch to merge from.

        Returns:
            What the merge did.

        Raises:
            InvalidArgumentError: If ``source_name`` is blank.
            NoOpenRepositoryError: If no repository is open.
            BranchNotFoundError: If no branch is named ``source_name``.
            UnderlyingEngineError: If the engine fails to merge.
        """
        source_name = _require_name(source_name, "source_name")
        session = self._manager.require_session()
        self._require_branch(source_name)

        identity = self._commits.resolve_identity()
        outcome = self._manager.engine.merge(session.handle, source_name, identity)
        self._logger.info(
            "branch_merged",
            branch=source_name,
            commit=outcome.commit_id,
            conflicts=len(outcome.conflicts),
            fast_forward=outcome.fast_forward,
            up_to_date=outcome.up_to_date,
        )
        return outcome

    # -------------------------------------------------------------------------
    # Preconditions
    # -------------------------------------------------------------------------

    def can_checkout(self, name: str) -> bool:
        """True if ``checkout(name)`` would pass its guards."""
        if not name or not name.strip() or not self._manager.is_open:
            return False
        try:
            exists = any(info.name == name.strip() for info in self._branch_infos())
            return exists and self._classifier.get_changes().is_clean
        except GitDeskError:
            return False

    def can_create_branch(self, name: str) -> bool:
        """True if ``name`` is unused and there is a commit to branch from."""
        if not name or not name.strip() or not self._manager.is_open:
            return False
        try:
            session = self._manager.require_session()
            infos = self._branch_infos()
            # HEAD may be detached, so the tip comes from history
            has_tip = bool(self._manager.engine.get_commit_log(session.handle, 1))
        except GitDeskError:
            return False
        taken = any(info.name == name.strip() for info in infos)
        return has_tip and not taken

    def can_merge(self, source_name: str) -> bool:
        """True if ``source_name`` exists and is not the current branch."""
        if not source_name or not source_name.strip() or not self._manager.is_open:
            return False
        try:
            infos = self._branch_infos()
        except GitDeskError:
            return False
        return any(
            info.name == source_name.strip() and not info.is_current for info in infos
        )

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    def _branch_infos(self) -> list[BranchInfo]:
        session = self._manager.require_session()
        return self._manager.engine.list_branches(session.handle)

    def _require_branch(self, name: str) -> None:
        if not any(info.name == name for info in self._branch_infos()):
            msg = f"Branch not found: {name}"
            raise BranchNotFoundError(msg, branch=name)
