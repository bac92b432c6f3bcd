"""Commit creation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from gitdesk.config import IdentityConfig
from gitdesk.exceptions import InvalidArgumentError, UnderlyingEngineError
from gitdesk.utils import get_default_logger

from ._identity import resolve_identity

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from gitdesk.models import CommitRecord, Identity

    from ._classifier import ChangeClassifier
    from ._manager import RepositoryManager


class CommitService:
    """Resolves authorship and creates commits on the current branch.

    Attributes:
        identity_config: Fallback name and email for unconfigured repositories.
    """

    __slots__: Final = ("_classifier", "_logger", "_manager", "identity_config")

    def __init__(
        self,
        manager: RepositoryManager,
        classifier: ChangeClassifier,
        *,
        identity_config: IdentityConfig | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._manager: RepositoryManager = manager
        self._classifier: ChangeClassifier = classifier
        self.identity_config: IdentityConfig = identity_config or IdentityConfig()
        self._logger: FilteringBoundLogger = logger or get_default_logger()

    def resolve_identity(self) -> Identity:
        """Resolve the identity commits are authored with.

        Reads ``user.name`` and ``user.email`` from the repository's
        configuration stack; each missing value falls back independently.

        Raises:
            NoOpenRepositoryError: If no repository is open.
        """
        session = self._manager.require_session()
        return resolve_identity(
            self._manager.engine, session.handle, fallback=self.identity_config.fallback
        )

    def commit(self, message: str) -> CommitRecord:
        """Commit the staged changes.

        The resolved identity is used as both author and committer. If a
        merge is in progress, the commit concludes it.

        Args:
            message: Commit message.

        Returns:
            The new commit.

        Raises:
            InvalidArgumentError: If ``message`` is empty or whitespace.
            NoOpenRepositoryError: If no repository is open.
            UnderlyingEngineError: If there is nothing to commit, conflicts
                remain, or the engine fails.
        """
        if not message or not message.strip():
            msg = "Commit message must not be empty"
            raise InvalidArgumentError(msg, argument="message")

        session = self._manager.require_session()
        identity = self.resolve_identity()
        engine = self._manager.engine
        commit_id = engine.commit(session.handle, message, identity)

        head = engine.get_commit_log(session.handle, 1)
        if not head or head[0].id != commit_id:
            msg = f"Commit {commit_id} is not at HEAD after committing"
            raise UnderlyingEngineError(msg, operation="commit", path=session.root)

        self._logger.info("committed", commit=commit_id, author=str(identity))
        return head[0]

    def can_commit(self, message: str) -> bool:
        """True if ``commit(message)`` has a message, a session and staged changes."""
        if not message or not message.strip() or not self._manager.is_open:
            return False
        return bool(self._classifier.get_changes().staged)
