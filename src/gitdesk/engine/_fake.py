# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Fake version-control engine for testing.

This module provides a FakeEngine class that implements VersionControlEngine
entirely in memory, so coordinator logic can be unit tested without touching
the filesystem.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from gitdesk.enums import FileStatus
from gitdesk.exceptions import UnderlyingEngineError
from gitdesk.models import (
    BranchInfo,
    CommitRecord,
    Identity,
    MergeOutcome,
    StatusEntry,
)

_INDEX_FLAGS = (
    FileStatus.NEW_IN_INDEX
    | FileStatus.MODIFIED_IN_INDEX
    | FileStatus.DELETED_FROM_INDEX
    | FileStatus.RENAMED_IN_INDEX
)

# Working-tree flag and the index flag it becomes when staged
_STAGE_TRANSITIONS = (
    (FileStatus.NEW_IN_WORKDIR, FileStatus.NEW_IN_INDEX),
    (FileStatus.MODIFIED_IN_WORKDIR, FileStatus.MODIFIED_IN_INDEX),
    (FileStatus.DELETED_FROM_WORKDIR, FileStatus.DELETED_FROM_INDEX),
    (FileStatus.RENAMED_IN_WORKDIR, FileStatus.RENAMED_IN_INDEX),
    (FileStatus.CONFLICTED, FileStatus.MODIFIED_IN_INDEX),
)


@dataclass(slots=True)
class FakeRepositoryState:
    """In-memory state of one fake repository.

    Tests manipulate these fields directly to set up scenarios:
    ``status`` holds raw flags per path, ``config`` holds dotted config keys,
    ``merge_conflicts`` lists the paths a merge of a given branch should
    leave conflicted, and ``detached_head`` is the commit HEAD points at
    when ``current`` is None.
    """

    root: Path
    current: str | None = "main"
    status: dict[str, FileStatus] = field(default_factory=dict)
    branches: dict[str, str] = field(default_factory=dict)
    commits: dict[str, tuple[CommitRecord, tuple[str, ...]]] = field(
        default_factory=dict
    )
    config: dict[str, str] = field(default_factory=dict)
    merge_conflicts: dict[str, tuple[str, ...]] = field(default_factory=dict)
    merge_head: str | None = None
    detached_head: str | None = None
    closed: bool = False
    _pre_stage: dict[str, FileStatus] = field(default_factory=dict)

    @property
    def head(self) -> str | None:
        """Tip of the current branch, or the detached HEAD commit.

        None for an unborn branch.
        """
        if self.current is None:
            return self.detached_head
        return self.branches.get(self.current)


@dataclass(slots=True)
class FakeEngine:
    """Fake version-control engine for testing.

    Implements VersionControlEngine with dictionaries instead of a git
    repository. Every call is recorded in ``calls`` as ``(operation, arg)``.

    Example:
        >>> engine = FakeEngine()
        >>> state = engine.add_repository(Path("/fake/project"))
        >>> state.status["src/main.py"] = FileStatus.MODIFIED_IN_WORKDIR
        >>> handle = engine.open(Path("/fake/project"))
        >>> engine.stage(handle, "src/main.py")
        >>> state.status["src/main.py"]
        <FileStatus.MODIFIED_IN_INDEX: 2>
    """

    repositories: dict[Path, FakeRepositoryState] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    clock: datetime = field(default_factory=lambda: datetime(2024, 1, 1, tzinfo=UTC))
    _commit_counter: int = field(default=0)

    # =========================================================================
    # Scenario Helpers
    # =========================================================================

    def add_repository(
        self, path: Path, *, default_branch: str = "main"
    ) -> FakeRepositoryState:
        """Register a repository that ``is_valid_repository()`` will accept."""
        state = FakeRepositoryState(root=path, current=default_branch)
        self.repositories[path] = state
        return state

    def add_commit(
        self, state: FakeRepositoryState, message: str, *, author: str = "Tester"
    ) -> str:
        """Create a commit on the current branch without going through ``commit()``."""
        return self._new_commit(state, message, Identity(author, "tester@example.com"))

    # =========================================================================
    # VersionControlEngine Methods
    # =========================================================================

    def is_valid_repository(self, path: Path) -> bool:
        return path in self.repositories

    def init(self, path: Path, *, default_branch: str) -> FakeRepositoryState:
        self.calls.append(("init", str(path)))
        return self.add_repository(path, default_branch=default_branch)

    def open(self, path: Path) -> FakeRepositoryState:
        self.calls.append(("open", str(path)))
        state = self.repositories[path]
        state.closed = False
        return state

    def close(self, handle: FakeRepositoryState) -> None:
        self.calls.append(("close", str(handle.root)))
        handle.closed = True

    def retrieve_status(
        self, handle: FakeRepositoryState, *, include_ignored: bool = False
    ) -> list[StatusEntry]:
        self.calls.append(("status", str(handle.root)))
        return [
            StatusEntry(path=path, flags=flags)
            for path, flags in sorted(handle.status.items())
            if include_ignored or flags != FileStatus.IGNORED
        ]

    def stage(self, handle: FakeRepositoryState, path: str) -> None:
        self.calls.append(("stage", path))
        flags = handle.status.get(path)
        if flags is None and (handle.root / path).exists():
            # Written to disk behind the fake's back, e.g. a placeholder file
            flags = FileStatus.NEW_IN_WORKDIR
        if flags is None:
            msg = f"pathspec '{path}' did not match any files"
            raise UnderlyingEngineError(msg, operation="stage", path=path)
        staged = flags & _INDEX_FLAGS
        for workdir_flag, index_flag in _STAGE_TRANSITIONS:
            if flags & workdir_flag:
                staged |= index_flag
        if staged != flags & _INDEX_FLAGS:
            handle._pre_stage.setdefault(path, flags)
        handle.status[path] = staged or flags

    def unstage(self, handle: FakeRepositoryState, path: str) -> None:
        self.calls.append(("unstage", path))
        previous = handle._pre_stage.pop(path, None)
        if previous is not None:
            handle.status[path] = previous
            return
        flags = handle.status.get(path)
        if flags is None or not flags & _INDEX_FLAGS:
            return
        unstaged = flags & ~_INDEX_FLAGS
        for workdir_flag, index_flag in _STAGE_TRANSITIONS[:-1]:
            if flags & index_flag:
                unstaged |= workdir_flag
        handle.status[path] = unstaged

    def commit(
        self, handle: FakeRepositoryState, message: str, identity: Identity
    ) -> str:
        self.calls.append(("commit", message))
        if any(flags & FileStatus.CONFLICTED for flags in handle.status.values()):
            msg = "Cannot commit while conflicts are unresolved"
            raise UnderlyingEngineError(msg, operation="commit", path=handle.root)
        staged = [p for p, flags in handle.status.items() if flags & _INDEX_FLAGS]
        if not staged and handle.merge_head is None:
            msg = "Nothing to commit"
            raise UnderlyingEngineError(msg, operation="commit", path=handle.root)

        for path in staged:
            remaining = handle.status[path] & ~_INDEX_FLAGS
            handle._pre_stage.pop(path, None)
            if remaining:
                handle.status[path] = remaining
            else:
                del handle.status[path]

        sha = self._new_commit(handle, message, identity)
        handle.merge_head = None
        return sha

    def list_branches(self, handle: FakeRepositoryState) -> list[BranchInfo]:
        return [
            BranchInfo(name=name, is_current=name == handle.current, tip_id=tip)
            for name, tip in sorted(handle.branches.items())
        ]

    def checkout(self, handle: FakeRepositoryState, branch_name: str) -> None:
        self.calls.append(("checkout", branch_name))
        if branch_name not in handle.branches:
            msg = f"checkout failed: no branch named '{branch_name}'"
            raise UnderlyingEngineError(
                msg, operation="checkout", path=handle.root, branch=branch_name
            )
        handle.current = branch_name
        handle.detached_head = None

    def create_branch(self, handle: FakeRepositoryState, name: str) -> str:
        self.calls.append(("create_branch", name))
        if name in handle.branches:
            msg = f"create_branch failed: Branch with name {name} already exists."
            raise UnderlyingEngineError(
                msg, operation="create_branch", path=handle.root, branch=name
            )
        tip = handle.head
        if tip is None:
            msg = "Cannot create a branch before the first commit"
            raise UnderlyingEngineError(
                msg, operation="create_branch", path=handle.root, branch=name
            )
        handle.branches[name] = tip
        handle.current = name
        handle.detached_head = None
        return f"refs/heads/{name}"

    def merge(
        self, handle: FakeRepositoryState, branch_name: str, identity: Identity
    ) -> MergeOutcome:
        self.calls.append(("merge", branch_name))
        theirs = handle.branches[branch_name]
        ours = handle.head
        if ours is None:
            msg = "merge failed: HEAD has no commits"
            raise UnderlyingEngineError(
                msg, operation="merge", path=handle.root, branch=branch_name
            )
        if theirs == ours or theirs in self._ancestry(handle, ours):
            return MergeOutcome(commit_id=None, up_to_date=True)

        conflicts = handle.merge_conflicts.get(branch_name, ())
        if conflicts:
            for path in conflicts:
                handle.status[path] = FileStatus.CONFLICTED
            handle.merge_head = theirs
            return MergeOutcome(commit_id=None, conflicts=tuple(sorted(conflicts)))

        if ours in self._ancestry(handle, theirs):
            handle.branches[handle.current or ""] = theirs
            return MergeOutcome(commit_id=theirs, fast_forward=True)

        handle.merge_head = theirs
        sha = self._new_commit(handle, f"Merge branch '{branch_name}'", identity)
        handle.merge_head = None
        return MergeOutcome(commit_id=sha)

    def read_config(self, handle: FakeRepositoryState, key: str) -> str | None:
        return handle.config.get(key)

    def get_commit_log(
        self, handle: FakeRepositoryState, max_count: int
    ) -> list[CommitRecord]:
        records: list[CommitRecord] = []
        sha = handle.head
        while sha is not None and len(records) < max_count:
            record, parents = handle.commits[sha]
            records.append(record)
            sha = parents[0] if parents else None
        return records

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _new_commit(
        self, state: FakeRepositoryState, message: str, identity: Identity
    ) -> str:
        self._commit_counter += 1
        sha = f"{self._commit_counter:040x}"
        parents = tuple(p for p in (state.head, state.merge_head) if p is not None)
        record = CommitRecord(
            id=sha,
            short_message=message.strip().splitlines()[0] if message.strip() else "",
            author_name=identity.name,
            authored_at=self.clock,
        )
        state.commits[sha] = (record, parents)
        if state.current is None and state.detached_head is not None:
            state.detached_head = sha
        else:
            state.branches[state.current or "main"] = sha
        return sha

    def _ancestry(self, state: FakeRepositoryState, sha: str) -> set[str]:
        seen: set[str] = set()
        stack = [sha]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(state.commits[current][1])
        return seen
