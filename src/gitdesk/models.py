# ruff: noqa: TC003  # datetime needed at runtime for dataclass fields
"""Snapshot records exchanged between the engine, the coordinators and callers.

Every record is a frozen dataclass created per query. Nothing here holds a
reference back to the repository, so snapshots stay valid after the session
moves on.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Final

from gitdesk.enums import ChangeStatus, FileStatus

SHORT_ID_LENGTH: Final = 7


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """Information about a single commit.

    Attributes:
        id: Full 40-character commit SHA hex string.
        short_message: First line of the commit message.
        author_name: Author name from the commit.
        authored_at: Author timestamp with the commit's own timezone.
    """

    id: str
    short_message: str
    author_name: str
    authored_at: datetime


@dataclass(frozen=True, slots=True)
class BranchRecord:
    """A local branch and where it points.

    Attributes:
        name: Branch name without the ``refs/heads/`` prefix.
        is_current: True if HEAD points at this branch.
        tip_id: Tip commit SHA abbreviated to seven characters.
    """

    name: str
    is_current: bool
    tip_id: str


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    """A classified change to one path.

    Attributes:
        file_path: Repository-relative path using ``/`` separators.
        status: The single status derived from the raw flags.
        is_staged: True if the change is recorded in the index.
    """

    file_path: str
    status: ChangeStatus
    is_staged: bool


@dataclass(frozen=True, slots=True)
class Changes:
    """Staged and unstaged changes from one classification pass.

    Attributes:
        staged: Changes recorded in the index, sorted by path.
        unstaged: Working-copy changes, sorted by path.
    """

    staged: tuple[ChangeRecord, ...]
    unstaged: tuple[ChangeRecord, ...]

    @property
    def is_clean(self) -> bool:
        """True if there are no staged or unstaged changes."""
        return not self.staged and not self.unstaged

    def __iter__(self) -> Iterator[tuple[ChangeRecord, ...]]:
        # Allows ``staged, unstaged = classifier.get_changes()``
        yield self.staged
        yield self.unstaged


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """Raw status of one path as reported by an engine.

    Attributes:
        path: Repository-relative path using ``/`` separators.
        flags: Raw status flags for the path.
    """

    path: str
    flags: FileStatus


@dataclass(frozen=True, slots=True)
class BranchInfo:
    """Raw branch listing entry as reported by an engine.

    Attributes:
        name: Branch name without the ``refs/heads/`` prefix.
        is_current: True if HEAD points at this branch.
        tip_id: Full tip commit SHA hex string.
    """

    name: str
    is_current: bool
    tip_id: str


@dataclass(frozen=True, slots=True)
class Identity:
    """Author or committer identity.

    Attributes:
        name: Display name.
        email: Email address.
    """

    name: str
    email: str

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"

    def to_bytes(self) -> bytes:
        """Render the identity in git's ``Name <email>`` form."""
        return str(self).encode()


@dataclass(frozen=True, slots=True)
class MergeOutcome:
    """Result of merging a branch into the current branch.

    Attributes:
        commit_id: SHA of the new merge commit or fast-forward target, None
            if nothing was committed (conflicts or already up to date).
        conflicts: Repository-relative paths left in a conflicted state.
        fast_forward: True if the current branch was fast-forwarded.
        up_to_date: True if the source branch was already merged.
    """

    commit_id: str | None
    conflicts: tuple[str, ...] = ()
    fast_forward: bool = False
    up_to_date: bool = False

    @property
    def has_conflicts(self) -> bool:
        """True if the merge left conflicted paths behind."""
        return bool(self.conflicts)
