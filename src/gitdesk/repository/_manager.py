# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Repository session lifecycle.

RepositoryManager owns the single open repository session. Every other
coordinator reaches the engine through ``require_session()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from gitdesk.config import IdentityConfig, RepositoryConfig
from gitdesk.exceptions import (
    InvalidArgumentError,
    NoOpenRepositoryError,
    NotARepositoryError,
    UnderlyingEngineError,
)
from gitdesk.utils import get_default_logger

from ._identity import resolve_identity

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from gitdesk.engine import VersionControlEngine
    from gitdesk.models import CommitRecord

INITIAL_COMMIT_MESSAGE: Final = "Initial commit"


@dataclass(frozen=True, slots=True)
class Session:
    """An open repository.

    Attributes:
        root: Working-copy root directory.
        handle: Engine handle for the repository.
    """

    root: Path
    handle: Any


class RepositoryManager:
    """Owns the open repository session and its open/create lifecycle.

    The manager starts closed. ``open()`` and ``create_or_open()`` move it to
    open; opening another path closes the previous handle first. There is no
    transition back to closed.

    Example:
        >>> manager = RepositoryManager(DulwichEngine())
        >>> manager.create_or_open(Path("/tmp/project"))
        True
        >>> manager.get_commit_log()[0].short_message
        'Initial commit'
    """

    __slots__: Final = (
        "_config",
        "_engine",
        "_identity_config",
        "_logger",
        "_session",
    )

    def __init__(
        self,
        engine: VersionControlEngine,
        *,
        config: RepositoryConfig | None = None,
        identity_config: IdentityConfig | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize a closed manager.

        Args:
            engine: Engine every repository operation is delegated to.
            config: Repository settings. Defaults to ``RepositoryConfig()``.
            identity_config: Identity fallbacks used for the placeholder
                commit. Defaults to ``IdentityConfig()``.
            logger: Diagnostic logger. Defaults to a stderr logger.
        """
        self._engine: VersionControlEngine = engine
        self._config: RepositoryConfig = config or RepositoryConfig()
        self._identity_config: IdentityConfig = identity_config or IdentityConfig()
        self._logger: FilteringBoundLogger = logger or get_default_logger()
        self._session: Session | None = None

    # -------------------------------------------------------------------------
    # Session State
    # -------------------------------------------------------------------------

    @property
    def engine(self) -> VersionControlEngine:
        """The engine repository operations are delegated to."""
        return self._engine

    @property
    def config(self) -> RepositoryConfig:
        return self._config

    @property
    def is_open(self) -> bool:
        """True if a repository session is open."""
        return self._session is not None

    @property
    def root(self) -> Path:
        """Working-copy root of the open session.

        Raises:
            NoOpenRepositoryError: If no repository is open.
        """
        return self.require_session().root

    def require_session(self) -> Session:
        """Return the open session.

        Raises:
            NoOpenRepositoryError: If no repository is open.
        """
        if self._session is None:
            raise NoOpenRepositoryError
        return self._session

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def open(self, path: Path) -> bool:
        """Open the existing repository at ``path``.

        Args:
            path: Working-copy root.

        Returns:
            True, since a repository existed.

        Raises:
            NotARepositoryError: If ``path`` holds no valid repository.
        """
        root = Path(path).expanduser().resolve()
        if not self._engine.is_valid_repository(root):
            msg = f"Not a repository: {root}"
            raise NotARepositoryError(msg, path=root)

        handle = self._engine.open(root)
        self._replace_session(Session(root=root, handle=handle))
        self._logger.info("repository_opened", path=str(root))
        return True

    def create_or_open(self, path: Path) -> bool:
        """Open the repository at ``path``, creating it first if needed.

        A missing directory is created. A new repository has HEAD on the
        configured default branch and, when ``placeholder_commit`` is enabled,
        a committed placeholder file. Opening an existing repository writes
        nothing.

        Args:
            path: Working-copy root.

        Returns:
            True if a new repository was initialized, False if one existed.

        Raises:
            UnderlyingEngineError: If the directory cannot be created or the
                engine fails to initialize it.
        """
        root = Path(path).expanduser().resolve()
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Cannot create directory {root}: {e}"
            raise UnderlyingEngineError(msg, operation="create", path=root) from e

        if self._engine.is_valid_repository(root):
            _ = self.open(root)
            return False

        handle = self._engine.init(root, default_branch=self._config.default_branch)
        self._logger.info(
            "repository_initialized",
            path=str(root),
            branch=self._config.default_branch,
        )
        if self._config.placeholder_commit:
            try:
                self._commit_placeholder(root, handle)
            except Exception:
                self._engine.close(handle)
                raise

        self._replace_session(Session(root=root, handle=handle))
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_commit_log(self, max_count: int | None = None) -> tuple[CommitRecord, ...]:
        """Return commits reachable from HEAD, newest first.

        Args:
            max_count: Maximum number of commits. Defaults to the configured
                ``commit_log_limit``.

        Raises:
            InvalidArgumentError: If ``max_count`` is not positive.
            NoOpenRepositoryError: If no repository is open.
        """
        if max_count is None:
            max_count = self._config.commit_log_limit
        if max_count <= 0:
            msg = f"max_count must be positive, got {max_count}"
            raise InvalidArgumentError(msg, argument="max_count")

        session = self.require_session()
        records = tuple(self._engine.get_commit_log(session.handle, max_count))
        self._logger.debug("commit_log_loaded", count=len(records))
        return records

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    def _replace_session(self, session: Session) -> None:
        previous = self._session
        self._session = session
        if previous is not None and previous.handle is not session.handle:
            self._engine.close(previous.handle)
            self._logger.debug("repository_closed", path=str(previous.root))

    def _commit_placeholder(self, root: Path, handle: Any) -> None:  # noqa: ANN401
        name = self._config.placeholder_file
        placeholder = root / name
        if not placeholder.exists():
            try:
                _ = placeholder.write_text(f"# {root.name}\n", encoding="utf-8")
            except OSError as e:
                msg = f"Cannot write {placeholder}: {e}"
                raise UnderlyingEngineError(msg, operation="create", path=placeholder) from e

        self._engine.stage(handle, name)
        identity = resolve_identity(
            self._engine, handle, fallback=self._identity_config.fallback
        )
        commit_id = self._engine.commit(handle, INITIAL_COMMIT_MESSAGE, identity)
        self._logger.info(
            "placeholder_committed", path=name, commit=commit_id, author=str(identity)
        )
