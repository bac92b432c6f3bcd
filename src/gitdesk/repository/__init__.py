"""Working-copy orchestration core.

Classes:
    RepositoryManager: Owns the open repository session.
    ChangeClassifier: Classifies raw status flags into staged/unstaged changes.
    StagingCoordinator: Stages and unstages paths.
    CommitService: Resolves authorship and creates commits.
    BranchCoordinator: Lists, creates, checks out and merges branches.

Functions:
    classify: Derive a ChangeStatus from raw flags.
    is_staged: Check whether raw flags include an index change.
    normalize_path: Normalize a repository-relative path.
    resolve_identity: Resolve author identity from repository configuration.
"""

from gitdesk.repository._branches import BranchCoordinator
from gitdesk.repository._classifier import (
    STAGED_FLAGS,
    STATUS_PRECEDENCE,
    ChangeClassifier,
    classify,
    is_staged,
)
from gitdesk.repository._commit import CommitService
from gitdesk.repository._identity import resolve_identity
from gitdesk.repository._manager import INITIAL_COMMIT_MESSAGE, RepositoryManager, Session
from gitdesk.repository._staging import StagingCoordinator, normalize_path

__all__ = [
    "INITIAL_COMMIT_MESSAGE",
    "STAGED_FLAGS",
    "STATUS_PRECEDENCE",
    "BranchCoordinator",
    "ChangeClassifier",
    "CommitService",
    "RepositoryManager",
    "Session",
    "StagingCoordinator",
    "classify",
    "is_staged",
    "normalize_path",
    "resolve_identity",
]
