"""Staging and unstaging of individual paths."""

from __future__ import annotations

from pathlib import PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING, Final

from gitdesk.exceptions import InvalidArgumentError
from gitdesk.utils import get_default_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._manager import RepositoryManager


def normalize_path(relative_path: str) -> str:
    """Normalize a repository-relative path to ``/``-separated form.

    Backslashes are treated as separators and ``.`` segments are dropped.

    Args:
        relative_path: Path as given by the caller.

    Returns:
        The normalized path, e.g. ``"src/app.py"``.

    Raises:
        InvalidArgumentError: If the path is blank, absolute, or escapes the
            repository root.
    """
    if not relative_path or not relative_path.strip():
        msg = "Path must not be empty"
        raise InvalidArgumentError(msg, argument="relative_path")

    unified = relative_path.replace("\\", "/")
    if PurePosixPath(unified).is_absolute() or PureWindowsPath(relative_path).drive:
        msg = f"Path must be relative to the repository root: {relative_path}"
        raise InvalidArgumentError(msg, argument="relative_path")

    parts = [part for part in PurePosixPath(unified).parts if part != "."]
    if ".." in parts:
        msg = f"Path escapes the repository root: {relative_path}"
        raise InvalidArgumentError(msg, argument="relative_path")
    if not parts:
        msg = f"Path does not name a file: {relative_path}"
        raise InvalidArgumentError(msg, argument="relative_path")

    return "/".join(parts)


class StagingCoordinator:
    """Stages and unstages paths in the open repository's index."""

    __slots__: Final = ("_logger", "_manager")

    def __init__(
        self,
        manager: RepositoryManager,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._manager: RepositoryManager = manager
        self._logger: FilteringBoundLogger = logger or get_default_logger()

    def stage(self, relative_path: str) -> None:
        """Record the working-copy state of a path in the index.

        A path deleted from the working copy is staged as a deletion.

        Raises:
            InvalidArgumentError: If the path is blank or not repository-relative.
            NoOpenRepositoryError: If no repository is open.
            UnderlyingEngineError: If the engine rejects the path.
        """
        path = normalize_path(relative_path)
        session = self._manager.require_session()
        self._manager.engine.stage(session.handle, path)
        self._logger.info("path_staged", path=path)

    def unstage(self, relative_path: str) -> None:
        """Reset a path's index entry to its HEAD state.

        A path absent from HEAD is removed from the index and becomes
        untracked again.

        Raises:
            InvalidArgumentError: If the path is blank or not repository-relative.
            NoOpenRepositoryError: If no repository is open.
            UnderlyingEngineError: If the engine fails.
        """
        path = normalize_path(relative_path)
        session = self._manager.require_session()
        self._manager.engine.unstage(session.handle, path)
        self._logger.info("path_unstaged", path=path)
