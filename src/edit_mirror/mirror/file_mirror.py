"""Disk mirror of one byte buffer with debounced external-change detection.

A mirror owns exactly one path. Writes and reads always move the full buffer.
External edits are detected by stat polling: a metadata difference starts a
settle loop that keeps sampling until the size and modification time stop
moving, so the multi-step saves most editors perform are only reported once
they are complete.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

from edit_mirror.config import WatchSettings
from edit_mirror.logging import JsonlEventLogger, describe_payload
from edit_mirror.mirror.editor import EditorLauncher
from edit_mirror.mirror.models import MISSING_SNAPSHOT, FileSnapshot

SleepFn = Callable[[float], None]


class MirrorIOError(OSError):
    """Raised when a mirror file cannot be opened for reading or writing."""

    def __init__(self, path: Path, operation: str, reason: str) -> None:
        super().__init__(f"Cannot {operation} mirror file {path}: {reason}")
        self.path = path
        self.operation = operation
        self.reason = reason


def stat_snapshot(path: Path) -> FileSnapshot:
    """Stat a path; any stat failure counts as a missing file."""
    try:
        stat = path.stat()
    except OSError:
        return MISSING_SNAPSHOT
    return FileSnapshot(exists=True, size=stat.st_size, mtime_ns=stat.st_mtime_ns)


def snapshot_differs(before: FileSnapshot, after: FileSnapshot) -> bool:
    """Return True when size or modification time moved between two snapshots."""
    return before.size != after.size or before.mtime_ns != after.mtime_ns


class FileMirror:
    """Keeps one in-memory buffer and one disk file in step."""

    def __init__(
        self,
        path: Path,
        watch: WatchSettings | None = None,
        event_logger: JsonlEventLogger | None = None,
        launcher: EditorLauncher | None = None,
        sleep: SleepFn = time.sleep,
    ) -> None:
        self._path = Path(path)
        self._watch = watch or WatchSettings()
        self._event_logger = event_logger
        self._launcher = launcher
        self._sleep = sleep
        self._data = b""
        self._snapshot = stat_snapshot(self._path)
        if self._snapshot.exists:
            self.read()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def exists(self) -> bool:
        return self._snapshot.exists

    @property
    def snapshot(self) -> FileSnapshot:
        return self._snapshot

    def has_data(self) -> bool:
        return len(self._data) != 0

    def get_data(self) -> bytes:
        """Return the cached buffer as of the last read, write, or settled change."""
        return self._data

    def write(self, data: bytes) -> None:
        """Replace the disk content with data and make it the polling baseline."""
        payload = bytes(data)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("wb") as handle:
                handle.write(payload)
        except OSError as error:
            self._log("mirror_write", ok=False, error=type(error).__name__)
            raise MirrorIOError(self._path, "write", str(error)) from error
        self._data = payload
        self._snapshot = stat_snapshot(self._path)

    def read(self) -> None:
        """Reload the cache and snapshot from disk; a missing file empties the cache."""
        self._snapshot = stat_snapshot(self._path)
        if not self._snapshot.exists:
            self._data = b""
            return
        try:
            with self._path.open("rb") as handle:
                data = handle.read()
        except FileNotFoundError:
            self._snapshot = MISSING_SNAPSHOT
            self._data = b""
            return
        except OSError as error:
            self._log("mirror_read", ok=False, error=type(error).__name__)
            raise MirrorIOError(self._path, "read", str(error)) from error
        self._data = data

    def poll_for_changes(self) -> bool:
        """Report whether the file was edited externally since the last baseline.

        Blocks for at least ``settle_samples`` polling intervals once a
        difference is seen. A missing file is recreated from the cache and is
        not reported as a change.
        """
        previous = self._snapshot
        self._snapshot = stat_snapshot(self._path)
        if not self._snapshot.exists:
            self._recreate()
            return False
        if not snapshot_differs(previous, self._snapshot):
            return False

        samples = self._settle()
        if not self._snapshot.exists:
            self._recreate()
            return False
        self.read()
        self._log("mirror_changed", samples=samples, **describe_payload(self._data))
        return True

    def open_in_editor(self, foreground: bool = True) -> None:
        """Hand the mirror path to the external editor without waiting on it."""
        if self._launcher is None:
            self._launcher = EditorLauncher()
        try:
            self._launcher.open(self._path, foreground=foreground)
        except OSError as error:
            raise MirrorIOError(self._path, "open", str(error)) from error
        self._log("mirror_opened", foreground=foreground)

    def _settle(self) -> int:
        samples = 0
        stable = 0
        while stable < self._watch.settle_samples:
            self._sleep(self._watch.poll_interval_seconds)
            last = self._snapshot
            self._snapshot = stat_snapshot(self._path)
            samples += 1
            if snapshot_differs(last, self._snapshot) or last.exists != self._snapshot.exists:
                stable = 0
            else:
                stable += 1
        return samples

    def _recreate(self) -> None:
        self.write(self._data)
        self._log("mirror_recreated", **describe_payload(self._data))

    def _log(self, event: str, ok: bool = True, **metadata: object) -> None:
        if self._event_logger is None:
            return
        self._event_logger.log(event, path=self._path, ok=ok, **metadata)
