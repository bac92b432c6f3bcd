"""Shared utilities for gitdesk."""

from ._git import branch_ref, decode_bytes, short_id, strip_refs_heads
from ._logging import LogFormatType, create_logger, get_default_logger

__all__ = [
    "LogFormatType",
    "branch_ref",
    "create_logger",
    "decode_bytes",
    "get_default_logger",
    "short_id",
    "strip_refs_heads",
]
