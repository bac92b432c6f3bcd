"""Change classification.

Raw engine status flags are collapsed into a single ``ChangeStatus`` per path
and split into staged and unstaged partitions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from gitdesk.enums import UNALTERED, ChangeStatus, FileStatus
from gitdesk.models import ChangeRecord, Changes
from gitdesk.utils import get_default_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._manager import RepositoryManager

STAGED_FLAGS: Final = (
    FileStatus.NEW_IN_INDEX
    | FileStatus.MODIFIED_IN_INDEX
    | FileStatus.DELETED_FROM_INDEX
    | FileStatus.RENAMED_IN_INDEX
)

# First matching flag wins
STATUS_PRECEDENCE: Final[tuple[tuple[FileStatus, ChangeStatus], ...]] = (
    (FileStatus.NEW_IN_INDEX, ChangeStatus.ADDED),
    (FileStatus.MODIFIED_IN_INDEX, ChangeStatus.MODIFIED),
    (FileStatus.DELETED_FROM_INDEX, ChangeStatus.DELETED),
    (FileStatus.RENAMED_IN_INDEX, ChangeStatus.RENAMED),
    (FileStatus.NEW_IN_WORKDIR, ChangeStatus.ADDED),
    (FileStatus.MODIFIED_IN_WORKDIR, ChangeStatus.MODIFIED),
    (FileStatus.DELETED_FROM_WORKDIR, ChangeStatus.DELETED),
    (FileStatus.RENAMED_IN_WORKDIR, ChangeStatus.RENAMED),
    (FileStatus.CONFLICTED, ChangeStatus.CONFLICTED),
    (FileStatus.IGNORED, ChangeStatus.IGNORED),
)


def classify(flags: FileStatus) -> ChangeStatus:
    """Derive the single status for a set of raw flags.

    Args:
        flags: Raw status flags for one path.

    Returns:
        The status of the first matching flag in precedence order, or
        ``UNTRACKED`` when none match.

    Example:
        >>> classify(FileStatus.NEW_IN_INDEX | FileStatus.MODIFIED_IN_WORKDIR)
        <ChangeStatus.ADDED: 'added'>
    """
    for flag, status in STATUS_PRECEDENCE:
        if flags & flag:
            return status
    return ChangeStatus.UNTRACKED


def is_staged(flags: FileStatus) -> bool:
    """True if any index flag is set."""
    return bool(flags & STAGED_FLAGS)


class ChangeClassifier:
    """Classifies the working copy of the open repository."""

    __slots__: Final = ("_include_ignored", "_logger", "_manager")

    def __init__(
        self,
        manager: RepositoryManager,
        *,
        include_ignored: bool | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            manager: Manager owning the session to classify.
            include_ignored: Report ignored paths. Defaults to the manager's
                ``include_ignored`` setting.
            logger: Diagnostic logger. Defaults to a stderr logger.
        """
        self._manager: RepositoryManager = manager
        self._include_ignored: bool = (
            manager.config.include_ignored if include_ignored is None else include_ignored
        )
        self._logger: FilteringBoundLogger = logger or get_default_logger()

    def get_changes(self) -> Changes:
        """Scan the working copy once and partition the changes.

        Returns:
            Staged and unstaged changes, each sorted by path.

        Raises:
            NoOpenRepositoryError: If no repository is open.
        """
        session = self._manager.require_session()
        entries = self._manager.engine.retrieve_status(
            session.handle, include_ignored=self._include_ignored
        )

        staged: list[ChangeRecord] = []
        unstaged: list[ChangeRecord] = []
        for entry in entries:
            if entry.flags == UNALTERED:
                continue
            record = ChangeRecord(
                file_path=entry.path,
                status=classify(entry.flags),
                is_staged=is_staged(entry.flags),
            )
            (staged if record.is_staged else unstaged).append(record)

        staged.sort(key=lambda r: r.file_path)
        unstaged.sort(key=lambda r: r.file_path)
        self._logger.debug("changes_classified", staged=len(staged), unstaged=len(unstaged))
        return Changes(staged=tuple(staged), unstaged=tuple(unstaged))
