"""Editable text items: generated buffers with a content-addressed disk mirror.

An item is created each time a generator wants to expose a buffer. The
buffer's digest names the mirror file, so byte-identical output always lands
on the same file and a hand edit made there survives across runs until the
generator's output changes.
"""

from __future__ import annotations

import time
from pathlib import Path

from edit_mirror.config import DEFAULT_MIN_OVERRIDE_BYTES, WatchSettings
from edit_mirror.items.hashing import content_hash, mirror_path_for
from edit_mirror.logging import JsonlEventLogger, describe_payload
from edit_mirror.mirror import EditorLauncher, FileMirror
from edit_mirror.mirror.file_mirror import SleepFn

RESOLUTION_UNRESOLVED = "unresolved"
RESOLUTION_GENERATED = "generated"
RESOLUTION_DISK_OVERRIDE = "disk_override"


class InconsistentStateError(RuntimeError):
    """Raised when an item's text is requested before authorship was resolved."""


class EditableTextItem:
    """Generated text whose authoritative copy may be a human-edited mirror file."""

    def __init__(
        self,
        text: bytes,
        size: int | None = None,
        overwrite: bool = False,
        prefix: str | Path = "",
        suffix: str = "",
        *,
        min_override_bytes: int = DEFAULT_MIN_OVERRIDE_BYTES,
        watch: WatchSettings | None = None,
        event_logger: JsonlEventLogger | None = None,
        launcher: EditorLauncher | None = None,
        sleep: SleepFn = time.sleep,
    ) -> None:
        if size is None:
            size = len(text)
        if size < 0 or size > len(text):
            raise ValueError(f"size {size} is outside the {len(text)}-byte text buffer.")

        self._original = bytes(text[:size])
        self._content_hash = content_hash(self._original)
        self._mirror_path = mirror_path_for(self._content_hash, prefix, suffix)
        self._event_logger = event_logger
        self._current: bytes | None = None
        self._resolution = RESOLUTION_UNRESOLVED

        self._mirror = FileMirror(
            self._mirror_path,
            watch=watch,
            event_logger=event_logger,
            launcher=launcher,
            sleep=sleep,
        )
        self._resolve(overwrite=overwrite, min_override_bytes=min_override_bytes)

    @property
    def original_bytes(self) -> bytes:
        return self._original

    @property
    def content_hash(self) -> str:
        return self._content_hash

    @property
    def mirror_path(self) -> Path:
        return self._mirror_path

    @property
    def resolution(self) -> str:
        """One of ``unresolved``, ``generated`` or ``disk_override``."""
        return self._resolution

    def has_data(self) -> bool:
        return self._mirror.has_data()

    def get_current_text(self) -> tuple[bytes, int]:
        """Return the authoritative buffer and its size."""
        if self._current is None:
            raise InconsistentStateError(
                f"Text item {self._content_hash} has no resolved content."
            )
        return self._current, len(self._current)

    def poll_for_changes(self) -> bool:
        """Adopt a settled external edit; return whether one was adopted.

        An edit that leaves the mirror empty is not adopted: the current text
        is kept and written back so the file still holds it.
        """
        if not self._mirror.poll_for_changes():
            return False
        if not self._mirror.has_data():
            current, _ = self.get_current_text()
            self._mirror.write(current)
            self._log("item_edit_ignored", reason="empty_mirror")
            return False
        self._adopt_mirror()
        return True

    def open_in_editor(self, foreground: bool = True) -> None:
        self._mirror.open_in_editor(foreground=foreground)

    def _resolve(self, overwrite: bool, min_override_bytes: int) -> None:
        # Short files on disk are treated as stubs and overwritten.
        honor_disk = (
            not overwrite
            and self._mirror.has_data()
            and len(self._mirror.get_data()) > min_override_bytes
        )
        if honor_disk:
            self._adopt_mirror()
            return
        self._mirror.write(self._original)
        self._current = self._original
        self._resolution = RESOLUTION_GENERATED
        self._log("item_resolved", source=RESOLUTION_GENERATED, **describe_payload(self._current))

    def _adopt_mirror(self) -> None:
        data = self._mirror.get_data()
        if not data:
            raise InconsistentStateError(
                f"Mirror {self._mirror_path} holds no data to adopt."
            )
        self._current = data
        self._resolution = RESOLUTION_DISK_OVERRIDE
        self._log("item_resolved", source=RESOLUTION_DISK_OVERRIDE, **describe_payload(data))

    def _log(self, event: str, **metadata: object) -> None:
        if self._event_logger is None:
            return
        self._event_logger.log(
            event, path=self._mirror_path, item_id=self._content_hash, **metadata
        )
