"""Enumeration types for gitdesk."""

from enum import Flag, StrEnum, auto


class ChangeStatus(StrEnum):
    """Classified status of a single changed path."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    CONFLICTED = "conflicted"
    IGNORED = "ignored"
    UNTRACKED = "untracked"


class FileStatus(Flag):
    """Raw status flags reported by a version-control engine for one path.

    Flags may co-occur (for example a file staged as new and then edited
    again carries both NEW_IN_INDEX and MODIFIED_IN_WORKDIR). The empty flag
    means the path is unaltered.
    """

    NEW_IN_INDEX = auto()
    MODIFIED_IN_INDEX = auto()
    DELETED_FROM_INDEX = auto()
    RENAMED_IN_INDEX = auto()
    NEW_IN_WORKDIR = auto()
    MODIFIED_IN_WORKDIR = auto()
    DELETED_FROM_WORKDIR = auto()
    RENAMED_IN_WORKDIR = auto()
    CONFLICTED = auto()
    IGNORED = auto()


UNALTERED = FileStatus(0)
"""Flag value for a path with no changes."""
