"""Live item bookkeeping for one process."""

from __future__ import annotations

import time
from pathlib import Path

from edit_mirror.config import ServiceConfig
from edit_mirror.items.editable import EditableTextItem
from edit_mirror.items.hashing import content_hash, mirror_path_for
from edit_mirror.logging import JsonlEventLogger
from edit_mirror.mirror import EditorLauncher
from edit_mirror.mirror.file_mirror import SleepFn


class ItemWorkspace:
    """Holds live items keyed by mirror path, preserving insertion order.

    Exposing text that maps to a mirror path already held returns the live
    item, so two items in one process never share a file.
    """

    def __init__(
        self,
        config: ServiceConfig,
        event_logger: JsonlEventLogger | None = None,
        launcher: EditorLauncher | None = None,
        sleep: SleepFn = time.sleep,
    ) -> None:
        self._config = config
        self._event_logger = event_logger
        self._launcher = launcher or EditorLauncher(config.editor)
        self._sleep = sleep
        self._prefix = f"{config.mirror.mirror_dir}/"
        self._items: dict[Path, EditableTextItem] = {}

    def expose(
        self,
        text: bytes,
        suffix: str | None = None,
        overwrite: bool | None = None,
    ) -> EditableTextItem:
        """Return the live item for text, creating and resolving it if needed."""
        effective_suffix = self._config.mirror.suffix if suffix is None else suffix
        path = mirror_path_for(content_hash(text), self._prefix, effective_suffix)
        existing = self._items.get(path)
        if existing is not None:
            return existing
        item = EditableTextItem(
            text,
            overwrite=self._config.override.force_overwrite if overwrite is None else overwrite,
            prefix=self._prefix,
            suffix=effective_suffix,
            min_override_bytes=self._config.override.min_bytes,
            watch=self._config.watch,
            event_logger=self._event_logger,
            launcher=self._launcher,
            sleep=self._sleep,
        )
        self._items[item.mirror_path] = item
        return item

    def get(self, item_id: str) -> EditableTextItem | None:
        """Find a live item by its id, the mirror file name (digest plus suffix)."""
        return self._items.get(mirror_path_for(item_id, self._prefix))

    def discard(self, item: EditableTextItem) -> None:
        self._items.pop(item.mirror_path, None)

    def items(self) -> tuple[EditableTextItem, ...]:
        return tuple(self._items.values())

    def poll_all(self) -> list[EditableTextItem]:
        """Poll every live item in insertion order; return those that adopted an edit."""
        return [item for item in self._items.values() if item.poll_for_changes()]
