"""gitdesk exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class GitDeskError(Exception):
    """Base exception for gitdesk errors."""


# =============================================================================
# Session Exceptions
# =============================================================================


class NoOpenRepositoryError(GitDeskError):
    """Raised when an operation needs an open repository and none is open."""

    def __init__(self, message: str = "No repository is open") -> None:
        """Initialize with an optional custom message.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)


class NotARepositoryError(GitDeskError):
    """Raised when a path holds no valid repository metadata.

    Attributes:
        path: The path that was probed.
    """

    def __init__(self, message: str, *, path: Path) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The path that was probed.
        """
        super().__init__(message)
        self.path: Path = path


# =============================================================================
# Argument and Precondition Exceptions
# =============================================================================


class InvalidArgumentError(GitDeskError, ValueError):
    """Raised when a required argument is missing, blank, or malformed.

    Attributes:
        argument: Name of the offending argument.
    """

    def __init__(self, message: str, *, argument: str) -> None:
        """Initialize with error message and argument name.

        Args:
            message: Human-readable error message.
            argument: Name of the offending argument.
        """
        super().__init__(message)
        self.argument: str = argument


class DirtyWorkingTreeError(GitDeskError):
    """Raised when uncommitted changes block a branch switch.

    Attributes:
        staged: Number of staged changes found.
        unstaged: Number of unstaged changes found.
    """

    def __init__(self, message: str, *, staged: int, unstaged: int) -> None:
        """Initialize with error message and change counts."""
        super().__init__(message)
        self.staged: int = staged
        self.unstaged: int = unstaged


class BranchNotFoundError(GitDeskError, KeyError):
    """Raised when a named branch does not exist.

    Attributes:
        branch: The branch name that was looked up.
    """

    def __init__(self, message: str, *, branch: str) -> None:
        """Initialize with error message and branch name."""
        super().__init__(message)
        self.branch: str = branch

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


# =============================================================================
# Engine Exceptions
# =============================================================================


class UnderlyingEngineError(GitDeskError):
    """Raised when the version-control engine fails.

    The lower-level exception, if any, is chained as ``__cause__``.

    Attributes:
        operation: Name of the operation that failed (e.g. ``"checkout"``).
        path: Repository root or file path involved, if any.
        branch: Branch involved, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        path: Path | str | None = None,
        branch: str | None = None,
    ) -> None:
        """Initialize with error message and operation context.

        Args:
            message: Human-readable error message.
            operation: Name of the operation that failed.
            path: Repository root or file path involved.
            branch: Branch involved.
        """
        super().__init__(message)
        self.operation: str = operation
        self.path: Path | str | None = path
        self.branch: str | None = branch


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(GitDeskError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column
