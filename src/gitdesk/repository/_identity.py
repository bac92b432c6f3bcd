"""Author identity resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gitdesk.models import Identity

if TYPE_CHECKING:
    from gitdesk.engine import VersionControlEngine

DEFAULT_NAME = "Unknown"
DEFAULT_EMAIL = "unknown@example.com"


def resolve_identity(
    engine: VersionControlEngine,
    handle: object,
    *,
    fallback: Identity | None = None,
) -> Identity:
    """Resolve the author identity from the repository configuration stack.

    ``user.name`` and ``user.email`` are read independently; a missing or
    blank value is replaced by the corresponding fallback value.

    Args:
        engine: Engine that owns ``handle``.
        handle: Open repository handle.
        fallback: Identity supplying the fallback values. Defaults to
            ``Unknown <unknown@example.com>``.

    Returns:
        The resolved identity.
    """
    fallback = fallback or Identity(DEFAULT_NAME, DEFAULT_EMAIL)
    name = (engine.read_config(handle, "user.name") or "").strip()
    email = (engine.read_config(handle, "user.email") or "").strip()
    return Identity(name=name or fallback.name, email=email or fallback.email)
