"""Content addressing for generated text."""

from __future__ import annotations

import hashlib
from pathlib import Path

CONTENT_HASH_HEX_LENGTH = 32


def content_hash(data: bytes) -> str:
    """Return the fixed-length lowercase hex digest identifying data."""
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def mirror_path_for(digest: str, prefix: str | Path, suffix: str = "") -> Path:
    """Build ``{prefix}{digest}{suffix}``; prefix may end in a separator or a name stem."""
    return Path(f"{prefix}{digest}{suffix}")
