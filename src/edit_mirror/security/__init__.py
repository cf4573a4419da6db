"""Path safety and payload limit primitives."""

from .paths import PathBlockedError, resolve_workspace_path
from .policy import (
    MirrorLimits,
    PolicyBlockedError,
    enforce_byte_count_limit,
    enforce_text_size_limit,
)

__all__ = [
    "MirrorLimits",
    "PathBlockedError",
    "PolicyBlockedError",
    "enforce_byte_count_limit",
    "enforce_text_size_limit",
    "resolve_workspace_path",
]
