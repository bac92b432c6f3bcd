"""Common git helper functions.

Byte/string conversion and reference-name helpers shared by the dulwich
engine and its tests.
"""

from typing import Final

HEADS_PREFIX: Final = "refs/heads/"


def decode_bytes(value: bytes | str) -> str:
    """Decode bytes to str if needed.

    Args:
        value: A bytes or str value.

    Returns:
        The value as a string.
    """
    if isinstance(value, bytes):
        return value.decode()
    return value


def branch_ref(name: str) -> bytes:
    """Build the full reference name for a local branch.

    Args:
        name: Branch name without prefix.

    Returns:
        The ``refs/heads/<name>`` reference as bytes.
    """
    return f"{HEADS_PREFIX}{name}".encode()


def strip_refs_heads(branch: bytes | str | None) -> str | None:
    """Strip refs/heads/ prefix from a branch reference.

    Args:
        branch: Branch reference (bytes or str), possibly with refs/heads/ prefix.

    Returns:
        Branch name without prefix, or None if input is None.
    """
    if branch is None:
        return None
    branch_str = decode_bytes(branch)
    if branch_str.startswith(HEADS_PREFIX):
        return branch_str[len(HEADS_PREFIX) :]
    return branch_str


def short_id(sha: str, length: int = 7) -> str:
    """Abbreviate a commit SHA for display."""
    return sha[:length]
