"""Dulwich-backed version-control engine.

This module implements VersionControlEngine on top of dulwich, a pure-Python
git implementation. High-level operations (add, commit, branch creation,
merge) go through ``dulwich.porcelain``; status, unstage and checkout are
computed from the HEAD tree, the index and the working tree directly so that
conflicted index stages, index renames and ignored files can be reported as
distinct flags.
"""

import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Final, TypeAlias, cast

from dulwich import porcelain
from dulwich.diff_tree import CHANGE_DELETE, tree_changes
from dulwich.errors import NotGitRepository
from dulwich.graph import find_merge_base
from dulwich.ignore import IgnoreFilterManager
from dulwich.index import (
    ConflictedIndexEntry,
    Index,
    IndexEntry,
    blob_from_path_and_stat,
    build_index_from_tree,
)
from dulwich.object_store import iter_tree_contents, tree_lookup_path
from dulwich.refs import check_ref_format
from dulwich.repo import Repo

from gitdesk.enums import FileStatus
from gitdesk.exceptions import GitDeskError, UnderlyingEngineError
from gitdesk.models import (
    BranchInfo,
    CommitRecord,
    Identity,
    MergeOutcome,
    StatusEntry,
)
from gitdesk.utils._git import branch_ref, decode_bytes, strip_refs_heads

# Git tree mode for submodule entries
_GITLINK_MODE: Final = 0o160000

_CONTROL_DIR: Final = ".git"

_FileMap: TypeAlias = dict[bytes, tuple[int, bytes]]
_Marker: TypeAlias = Callable[[bytes | str, FileStatus], None]


@contextmanager
def _engine_errors(
    operation: str,
    *,
    path: Path | str | None = None,
    branch: str | None = None,
) -> Iterator[None]:
    """Translate lower-level failures into UnderlyingEngineError.

    Args:
        operation: Name of the operation being performed.
        path: Repository root or file path involved.
        branch: Branch involved.

    Raises:
        UnderlyingEngineError: Wrapping any dulwich or OS error. Many
            dulwich errors (WorkingTreeModifiedError, HookError, ...) derive
            directly from Exception, so everything below gitdesk is wrapped.
    """
    try:
        yield
    except GitDeskError:
        raise
    except Exception as e:  # noqa: BLE001
        msg = f"{operation} failed: {e}"
        raise UnderlyingEngineError(
            msg, operation=operation, path=path, branch=branch
        ) from e


class DulwichEngine:
    """VersionControlEngine implementation backed by dulwich.

    Handles are ``dulwich.repo.Repo`` instances for non-bare repositories.

    Example:
        >>> engine = DulwichEngine()
        >>> repo = engine.init(Path("/tmp/project"), default_branch="main")
        >>> engine.retrieve_status(repo)
        []
    """

    __slots__: Final = ()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def is_valid_repository(self, path: Path) -> bool:
        if not path.is_dir():
            return False
        try:
            repo = Repo(str(path))
        except NotGitRepository:
            return False
        try:
            return not repo.bare
        finally:
            repo.close()

    def init(self, path: Path, *, default_branch: str) -> Repo:
        with _engine_errors("init", path=path):
            repo = Repo.init(str(path))
            repo.refs.set_symbolic_ref(b"HEAD", branch_ref(default_branch))
            return repo

    def open(self, path: Path) -> Repo:
        with _engine_errors("open", path=path):
            return Repo(str(path))

    def close(self, handle: Repo) -> None:
        handle.close()

    # =========================================================================
    # Status
    # =========================================================================

    def retrieve_status(
        self, handle: Repo, *, include_ignored: bool = False
    ) -> list[StatusEntry]:
        """Collect raw status flags for every changed path.

        Compares three states: the HEAD tree against the index (staged
        changes, with exact-content renames paired up), the index against the
        working tree (unstaged changes), and the working tree against the
        index (untracked and ignored paths). Conflicted index entries are
        reported as CONFLICTED only.

        Args:
            handle: Repository handle.
            include_ignored: Also report paths matched by ignore rules.
                Ignored directories are reported once with a trailing ``/``.

        Returns:
            Entries sorted by path.
        """
        root = self._root(handle)
        with _engine_errors("status", path=root):
            index = handle.open_index()
            head_files = self._tree_files(handle, self._head_tree(handle))
            index_files = self._index_files(index)
            conflicted = {path for path in index if path not in index_files}

            flags: dict[str, FileStatus] = {}

            def mark(path: bytes | str, flag: FileStatus) -> None:
                key = decode_bytes(path)
                flags[key] = flags.get(key, FileStatus(0)) | flag

            self._mark_index_changes(head_files, index_files, conflicted, mark)
            self._mark_workdir_changes(root, index_files, mark)
            self._mark_untracked(handle, root, index, mark, include_ignored=include_ignored)
            for path in conflicted:
                mark(path, FileStatus.CONFLICTED)

        return [StatusEntry(path=p, flags=flags[p]) for p in sorted(flags)]

    def _mark_index_changes(
        self,
        head_files: _FileMap,
        index_files: _FileMap,
        conflicted: set[bytes],
        mark: _Marker,
    ) -> None:
        """Flag differences between the HEAD tree and the index."""
        added = sorted(p for p in index_files if p not in head_files)
        deleted = sorted(
            p for p in head_files if p not in index_files and p not in conflicted
        )

        # Pair deletions with additions of identical content as renames
        deleted_by_sha: dict[bytes, list[bytes]] = {}
        for path in deleted:
            deleted_by_sha.setdefault(head_files[path][1], []).append(path)
        consumed: set[bytes] = set()
        for path in added:
            candidates = deleted_by_sha.get(index_files[path][1])
            if candidates:
                consumed.add(candidates.pop(0))
                mark(path, FileStatus.RENAMED_IN_INDEX)
            else:
                mark(path, FileStatus.NEW_IN_INDEX)

        for path in deleted:
            if path not in consumed:
                mark(path, FileStatus.DELETED_FROM_INDEX)

        for path, entry in index_files.items():
            if path in head_files and head_files[path] != entry:
                mark(path, FileStatus.MODIFIED_IN_INDEX)

    def _mark_workdir_changes(
        self, root: Path, index_files: _FileMap, mark: _Marker
    ) -> None:
        """Flag differences between the index and the working tree."""
        for path, (mode, sha) in index_files.items():
            if mode == _GITLINK_MODE:
                continue
            full_path = root / decode_bytes(path)
            if not os.path.lexists(full_path) or full_path.is_dir():
                mark(path, FileStatus.DELETED_FROM_WORKDIR)
                continue
            st = os.lstat(full_path)
            blob = blob_from_path_and_stat(os.fsencode(full_path), st)
            if blob.id != sha:
                mark(path, FileStatus.MODIFIED_IN_WORKDIR)

    def _mark_untracked(
        self,
        repo: Repo,
        root: Path,
        index: Index,
        mark: _Marker,
        *,
        include_ignored: bool,
    ) -> None:
        """Flag working-tree paths that the index does not know about."""
        ignore_manager = IgnoreFilterManager.from_repo(repo)

        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            rel_dir = current.relative_to(root)
            candidates = list(filenames)

            kept: list[str] = []
            for name in sorted(dirnames):
                if name == _CONTROL_DIR:
                    continue
                rel = (rel_dir / name).as_posix()
                if (current / name).is_symlink():
                    candidates.append(name)
                elif ignore_manager.is_ignored(f"{rel}/"):
                    if include_ignored:
                        mark(f"{rel}/", FileStatus.IGNORED)
                elif (current / name / _CONTROL_DIR).exists():
                    # Nested repository, reported as a single entry
                    if rel.encode() not in index:
                        mark(f"{rel}/", FileStatus.NEW_IN_WORKDIR)
                else:
                    kept.append(name)
            dirnames[:] = kept

            for name in candidates:
                rel = (rel_dir / name).as_posix()
                if rel.encode() in index:
                    continue
                if ignore_manager.is_ignored(rel):
                    if include_ignored:
                        mark(rel, FileStatus.IGNORED)
                else:
                    mark(rel, FileStatus.NEW_IN_WORKDIR)

    # =========================================================================
    # Staging
    # =========================================================================

    def stage(self, handle: Repo, path: str) -> None:
        root = self._root(handle)
        full_path = root / path
        with _engine_errors("stage", path=path):
            if os.path.lexists(full_path):
                added, ignored = porcelain.add(handle, paths=[str(full_path)])
                if ignored and not added:
                    msg = f"'{path}' is ignored by the repository's ignore rules"
                    raise UnderlyingEngineError(msg, operation="stage", path=path)
                return

            # Deleted from the working tree: record the deletion
            index = handle.open_index()
            key = path.encode()
            if key not in index:
                msg = f"pathspec '{path}' did not match any files"
                raise UnderlyingEngineError(msg, operation="stage", path=path)
            del index[key]
            index.write()

    def unstage(self, handle: Repo, path: str) -> None:
        """Reset the index entries for ``path`` to their HEAD state.

        ``path`` names a file or a directory; for a directory every entry
        beneath it is reset. Entries in HEAD are rewritten from the HEAD blob,
        entries absent from HEAD (newly added) are removed from the index. The
        working tree is never touched.

        Raises:
            UnderlyingEngineError: If neither the index nor HEAD knows ``path``.
        """
        key = path.encode()
        prefix = key.rstrip(b"/") + b"/"

        def selected(candidate: bytes) -> bool:
            return candidate == key or candidate.startswith(prefix)

        with _engine_errors("unstage", path=path):
            index = handle.open_index()
            head_files = self._tree_files(handle, self._head_tree(handle))
            paths = {p for p in index if selected(p)} | {
                p for p in head_files if selected(p)
            }
            if not paths:
                msg = f"pathspec '{path}' did not match any file known to the repository"
                raise UnderlyingEngineError(msg, operation="unstage", path=path)

            try:
                for entry_path in sorted(paths):
                    if entry_path in head_files:
                        mode, sha = head_files[entry_path]
                        index[entry_path] = self._index_entry(handle, mode, sha)
                    else:
                        del index[entry_path]
            finally:
                index.write()

    # =========================================================================
    # Commits
    # =========================================================================

    def commit(self, handle: Repo, message: str, identity: Identity) -> str:
        root = self._root(handle)
        with _engine_errors("commit", path=root):
            index = handle.open_index()
            if index.has_conflicts():
                msg = "Cannot commit while conflicts are unresolved"
                raise UnderlyingEngineError(msg, operation="commit", path=root)

            merging = self._merge_head_path(handle).exists()
            head_files = self._tree_files(handle, self._head_tree(handle))
            if not merging and self._index_files(index) == head_files:
                msg = "Nothing to commit"
                raise UnderlyingEngineError(msg, operation="commit", path=root)

            author = identity.to_bytes()
            commit_id = porcelain.commit(
                handle,
                message=message.encode(),
                author=author,
                committer=author,
            )
            self._clear_merge_state(handle)
            return decode_bytes(commit_id)

    def get_commit_log(self, handle: Repo, max_count: int) -> list[CommitRecord]:
        head = self._head_sha(handle)
        if head is None:
            return []
        with _engine_errors("log", path=self._root(handle)):
            walker = handle.get_walker(include=[head], max_entries=max_count)
            return [self._entry_to_commit_record(entry) for entry in walker]

    def _entry_to_commit_record(self, entry: object) -> CommitRecord:
        """Convert a dulwich walker entry to a CommitRecord.

        Args:
            entry: A WalkEntry from dulwich's get_walker().

        Returns:
            CommitRecord populated from the commit data.
        """
        commit = entry.commit  # pyright: ignore[reportAttributeAccessIssue]

        author_bytes = cast("bytes", commit.author)
        author_time = cast("int", commit.author_time)
        author_tz = cast("int", commit.author_timezone)
        message = cast("bytes", commit.message).decode("utf-8", errors="replace")

        author_name = self._parse_author_name(author_bytes)

        # dulwich already converts git's "seconds west" into seconds east of UTC
        tz = timezone(timedelta(seconds=author_tz))
        authored_at = datetime.fromtimestamp(author_time, tz=tz)

        lines = message.strip().splitlines()
        return CommitRecord(
            id=decode_bytes(commit.id),
            short_message=lines[0] if lines else "",
            author_name=author_name,
            authored_at=authored_at,
        )

    def _parse_author_name(self, author: bytes) -> str:
        """Extract the name part of a ``Name <email>`` author line."""
        author_str = author.decode("utf-8", errors="replace")
        if "<" in author_str and author_str.endswith(">"):
            return author_str.rsplit("<", 1)[0].strip()
        return author_str

    # =========================================================================
    # Branches
    # =========================================================================

    def list_branches(self, handle: Repo) -> list[BranchInfo]:
        with _engine_errors("list_branches", path=self._root(handle)):
            current = self._current_branch(handle)
            branches: list[BranchInfo] = []
            for ref in sorted(handle.refs.keys(base=b"refs/heads/")):
                name = decode_bytes(ref)
                tip = handle.refs[branch_ref(name)]
                branches.append(
                    BranchInfo(
                        name=name, is_current=name == current, tip_id=decode_bytes(tip)
                    )
                )
            return branches

    def checkout(self, handle: Repo, branch_name: str) -> None:
        """Switch HEAD, the index and the working tree to ``branch_name``.

        Files present in the old HEAD tree but absent from the target tree are
        removed; every file of the target tree is written and the index is
        rebuilt from it. Callers are expected to have verified that the
        working tree is clean.
        """
        root = self._root(handle)
        ref = branch_ref(branch_name)
        with _engine_errors("checkout", path=root, branch=branch_name):
            target = handle.refs[ref]
            new_tree = handle[target].tree  # pyright: ignore[reportAttributeAccessIssue]
            old_tree = self._head_tree(handle)

            if old_tree is not None:
                for change in tree_changes(handle.object_store, old_tree, new_tree):
                    if change.type == CHANGE_DELETE:
                        self._remove_worktree_file(root, decode_bytes(change.old.path))

            build_index_from_tree(
                str(root), handle.index_path(), handle.object_store, new_tree
            )
            handle.refs.set_symbolic_ref(b"HEAD", ref)

    def create_branch(self, handle: Repo, name: str) -> str:
        root = self._root(handle)
        ref = branch_ref(name)
        with _engine_errors("create_branch", path=root, branch=name):
            if not check_ref_format(ref):
                msg = f"'{name}' is not a valid branch name"
                raise UnderlyingEngineError(
                    msg, operation="create_branch", path=root, branch=name
                )
            if self._head_sha(handle) is None:
                msg = "Cannot create a branch before the first commit"
                raise UnderlyingEngineError(
                    msg, operation="create_branch", path=root, branch=name
                )
            porcelain.branch_create(handle, name)
            # Same tip as HEAD, so only the symbolic ref moves
            handle.refs.set_symbolic_ref(b"HEAD", ref)
        return decode_bytes(ref)

    def merge(self, handle: Repo, branch_name: str, identity: Identity) -> MergeOutcome:
        """Merge ``branch_name`` into the current branch.

        Conflicts are left in place: conflicting paths get ancestor/ours/theirs
        stages in the index and MERGE_HEAD records the merged tip, so a later
        commit becomes the merge commit.
        """
        root = self._root(handle)
        with _engine_errors("merge", path=root, branch=branch_name):
            head = handle.head()
            theirs = handle.refs[branch_ref(branch_name)]
            author = identity.to_bytes()
            merge_id, conflicts = porcelain.merge(
                handle,
                branch_name,
                author=author,
                committer=author,
                message=f"Merge branch '{branch_name}'".encode(),
            )

            if conflicts:
                conflict_paths = sorted(conflicts)
                self._record_conflicts(handle, head, theirs, conflict_paths)
                return MergeOutcome(
                    commit_id=None,
                    conflicts=tuple(decode_bytes(p) for p in conflict_paths),
                )
            if merge_id is None:
                return MergeOutcome(commit_id=None, up_to_date=True)
            return MergeOutcome(
                commit_id=decode_bytes(merge_id), fast_forward=merge_id == theirs
            )

    def _record_conflicts(
        self, repo: Repo, ours: bytes, theirs: bytes, paths: list[bytes]
    ) -> None:
        """Write conflicted index stages and MERGE_HEAD for a stopped merge."""
        bases = find_merge_base(repo, [ours, theirs])
        base_tree = repo[bases[0]].tree if bases else None  # pyright: ignore[reportAttributeAccessIssue]
        our_tree = repo[ours].tree  # pyright: ignore[reportAttributeAccessIssue]
        their_tree = repo[theirs].tree  # pyright: ignore[reportAttributeAccessIssue]

        index = repo.open_index()
        try:
            for path in paths:
                index[path] = ConflictedIndexEntry(
                    ancestor=self._lookup(repo, base_tree, path),
                    this=self._lookup(repo, our_tree, path),
                    other=self._lookup(repo, their_tree, path),
                )
        finally:
            index.write()

        _ = self._merge_head_path(repo).write_bytes(theirs + b"\n")

    # =========================================================================
    # Configuration
    # =========================================================================

    def read_config(self, handle: Repo, key: str) -> str | None:
        section, _, name = key.rpartition(".")
        if not section or not name:
            return None
        section_key = tuple(part.encode() for part in section.split(".", 1))
        config = handle.get_config_stack()
        try:
            value = config.get(section_key, name.encode())
        except KeyError:
            return None
        text = decode_bytes(value).strip()
        return text or None

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _root(self, repo: Repo) -> Path:
        return Path(decode_bytes(repo.path))

    def _head_sha(self, repo: Repo) -> bytes | None:
        try:
            return repo.head()
        except KeyError:
            # No commits yet (unborn branch)
            return None

    def _head_tree(self, repo: Repo) -> bytes | None:
        head = self._head_sha(repo)
        if head is None:
            return None
        return repo[head].tree  # pyright: ignore[reportAttributeAccessIssue]

    def _current_branch(self, repo: Repo) -> str | None:
        head_ref = repo.refs.get_symrefs().get(b"HEAD")
        if head_ref is None or not head_ref.startswith(b"refs/heads/"):
            return None
        return strip_refs_heads(head_ref)

    def _tree_files(self, repo: Repo, tree_id: bytes | None) -> _FileMap:
        if tree_id is None:
            return {}
        return {
            entry.path: (entry.mode, entry.sha)
            for entry in iter_tree_contents(repo.object_store, tree_id)
        }

    def _index_files(self, index: Index) -> _FileMap:
        """Map index paths to (mode, sha), skipping conflicted entries."""
        return {
            path: (entry.mode, entry.sha)
            for path, entry in index.items()
            if not isinstance(entry, ConflictedIndexEntry)
        }

    def _lookup(self, repo: Repo, tree_id: bytes | None, path: bytes) -> IndexEntry | None:
        """Build an index entry for ``path`` as it exists in ``tree_id``."""
        if tree_id is None:
            return None
        try:
            mode, sha = tree_lookup_path(repo.__getitem__, tree_id, path)
        except KeyError:
            return None
        return self._index_entry(repo, mode, sha)

    def _index_entry(self, repo: Repo, mode: int, sha: bytes) -> IndexEntry:
        """Build an index entry for a stored blob.

        Stat fields are zeroed so that git re-hashes the working file
        instead of trusting cached stat data.
        """
        blob_data: bytes = getattr(repo[sha], "data", b"")
        return IndexEntry(
            ctime=(0, 0),
            mtime=(0, 0),
            dev=0,
            ino=0,
            mode=mode,
            uid=0,
            gid=0,
            size=len(blob_data),
            sha=sha,
            flags=0,
        )

    def _remove_worktree_file(self, root: Path, relative_path: str) -> None:
        """Delete a working-tree file and prune directories left empty."""
        target = root / relative_path
        if os.path.lexists(target):
            target.unlink()
        parent = target.parent
        while parent != root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

    def _merge_head_path(self, repo: Repo) -> Path:
        return Path(decode_bytes(repo.controldir())) / "MERGE_HEAD"

    def _clear_merge_state(self, repo: Repo) -> None:
        control = Path(decode_bytes(repo.controldir()))
        for name in ("MERGE_HEAD", "MERGE_MSG", "MERGE_MODE"):
            (control / name).unlink(missing_ok=True)
