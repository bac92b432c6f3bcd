# ruff: noqa: TC003  # Path needed at runtime for Protocol method bodies
"""Version-control engine protocol for type-safe dependency injection.

The coordinators never talk to a git library directly. They call an engine
through this protocol, which both the dulwich-backed engine and the
in-memory fake satisfy.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gitdesk.models import (
        BranchInfo,
        CommitRecord,
        Identity,
        MergeOutcome,
        StatusEntry,
    )


@runtime_checkable
class VersionControlEngine(Protocol):
    """Protocol for the storage engine the orchestration core delegates to.

    Handles returned by ``init()`` and ``open()`` are opaque to callers; they
    are passed back into every other method unchanged.

    Example:
        >>> engine = DulwichEngine()
        >>> handle = engine.open(Path("/path/to/repo"))
        >>> entries = engine.retrieve_status(handle)
    """

    def is_valid_repository(self, path: Path) -> bool:
        """Check whether ``path`` holds valid repository metadata.

        Args:
            path: Working-copy root to probe.

        Returns:
            True if a repository can be opened at exactly this path.
        """
        ...

    def init(self, path: Path, *, default_branch: str) -> Any:  # noqa: ANN401
        """Initialize a new repository at ``path`` and return its handle.

        Args:
            path: Existing directory to initialize.
            default_branch: Branch HEAD should point at before the first commit.
        """
        ...

    def open(self, path: Path) -> Any:  # noqa: ANN401
        """Open the repository at ``path`` and return its handle."""
        ...

    def close(self, handle: Any) -> None:  # noqa: ANN401
        """Release resources held by ``handle``."""
        ...

    def retrieve_status(
        self, handle: Any, *, include_ignored: bool = False  # noqa: ANN401
    ) -> list[StatusEntry]:
        """Collect raw status flags for every changed path.

        Args:
            handle: Repository handle.
            include_ignored: Also report paths matched by ignore rules.

        Returns:
            One entry per path with at least one flag set.
        """
        ...

    def stage(self, handle: Any, path: str) -> None:  # noqa: ANN401
        """Record the working-copy state of ``path`` in the index."""
        ...

    def unstage(self, handle: Any, path: str) -> None:  # noqa: ANN401
        """Reset the index entry for ``path`` to its HEAD state."""
        ...

    def commit(self, handle: Any, message: str, identity: Identity) -> str:  # noqa: ANN401
        """Commit the index and advance the current branch.

        Args:
            handle: Repository handle.
            message: Commit message.
            identity: Used as both author and committer.

        Returns:
            The new commit SHA hex string.
        """
        ...

    def list_branches(self, handle: Any) -> list[BranchInfo]:  # noqa: ANN401
        """List local branches."""
        ...

    def checkout(self, handle: Any, branch_name: str) -> None:  # noqa: ANN401
        """Switch HEAD, index and working tree to ``branch_name``."""
        ...

    def create_branch(self, handle: Any, name: str) -> str:  # noqa: ANN401
        """Create ``name`` at the current tip and make it current.

        Returns:
            The full reference name of the new branch.
        """
        ...

    def merge(
        self, handle: Any, branch_name: str, identity: Identity  # noqa: ANN401
    ) -> MergeOutcome:
        """Merge ``branch_name`` into the current branch."""
        ...

    def read_config(self, handle: Any, key: str) -> str | None:  # noqa: ANN401
        """Read a dotted configuration key such as ``user.name``.

        Returns:
            The configured value, or None if it is not set anywhere.
        """
        ...

    def get_commit_log(self, handle: Any, max_count: int) -> list[CommitRecord]:  # noqa: ANN401
        """Walk history from HEAD, newest first, up to ``max_count`` commits."""
        ...
