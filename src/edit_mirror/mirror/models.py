"""Typed models for mirror state."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class FileSnapshot:
    """Stat metadata used to detect external edits."""

    exists: bool
    size: int
    mtime_ns: int


MISSING_SNAPSHOT = FileSnapshot(exists=False, size=0, mtime_ns=0)
