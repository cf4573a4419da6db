"""Content-addressed editable text items."""

from .editable import (
    RESOLUTION_DISK_OVERRIDE,
    RESOLUTION_GENERATED,
    RESOLUTION_UNRESOLVED,
    EditableTextItem,
    InconsistentStateError,
)
from .hashing import CONTENT_HASH_HEX_LENGTH, content_hash, mirror_path_for
from .workspace import ItemWorkspace

__all__ = [
    "CONTENT_HASH_HEX_LENGTH",
    "EditableTextItem",
    "InconsistentStateError",
    "ItemWorkspace",
    "RESOLUTION_DISK_OVERRIDE",
    "RESOLUTION_GENERATED",
    "RESOLUTION_UNRESOLVED",
    "content_hash",
    "mirror_path_for",
]
