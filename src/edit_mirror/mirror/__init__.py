"""Disk-backed mirrors of in-memory buffers."""

from .editor import EditorLauncher
from .file_mirror import FileMirror, MirrorIOError, snapshot_differs, stat_snapshot
from .models import MISSING_SNAPSHOT, FileSnapshot

__all__ = [
    "EditorLauncher",
    "FileMirror",
    "FileSnapshot",
    "MISSING_SNAPSHOT",
    "MirrorIOError",
    "snapshot_differs",
    "stat_snapshot",
]
