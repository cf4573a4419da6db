"""Built-in mirror and sectioning tools."""

from __future__ import annotations

from collections.abc import Callable

from edit_mirror.config import ServiceConfig
from edit_mirror.items import EditableTextItem, ItemWorkspace
from edit_mirror.sections import SHADER_STAGE_MARKERS, TextSectioner
from edit_mirror.security import (
    enforce_byte_count_limit,
    enforce_text_size_limit,
    resolve_workspace_path,
)
from edit_mirror.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry

MAX_EVENTS_PER_READ = 200


def register_builtin_tools(
    registry: ToolRegistry,
    workspace: ItemWorkspace,
    config: ServiceConfig,
    read_events: Callable[[str | None, int], list[dict[str, object]]],
) -> None:
    """Register the mirror tool set."""
    registry.register(
        "mirror.status",
        _status_handler(workspace, config, registry),
        "Effective config and live items.",
    )
    registry.register(
        "mirror.expose",
        _expose_handler(workspace, config),
        "Expose generated text as a content-addressed mirror file.",
    )
    registry.register(
        "mirror.poll",
        _poll_handler(workspace),
        "Adopt settled external edits.",
    )
    registry.register(
        "mirror.text",
        _text_handler(workspace),
        "Current authoritative text of an item.",
    )
    registry.register(
        "mirror.open",
        _open_handler(workspace),
        "Open an item's mirror file in the configured editor.",
    )
    registry.register(
        "mirror.discard",
        _discard_handler(workspace),
        "Stop tracking an item; its mirror file stays on disk.",
    )
    registry.register(
        "text.sections",
        _sections_handler(workspace, config),
        "Split text into marker-delimited sections.",
    )
    registry.register(
        "mirror.events",
        _events_handler(read_events),
        "Recent mirror events.",
    )


def item_summary(item: EditableTextItem) -> dict[str, object]:
    """Describe an item without its text."""
    _, size = item.get_current_text()
    return {
        "item_id": item.mirror_path.name,
        "content_hash": item.content_hash,
        "path": str(item.mirror_path),
        "resolution": item.resolution,
        "size": size,
    }


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _require_item(
    workspace: ItemWorkspace, arguments: dict[str, object], tool: str
) -> EditableTextItem:
    item_id = arguments.get("item_id")
    if not isinstance(item_id, str) or not item_id:
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} item_id must be a non-empty string.",
        )
    item = workspace.get(item_id)
    if item is None:
        raise ToolDispatchError(code="UNKNOWN_ITEM", message=f"Unknown item: {item_id}")
    return item


def _unreadable_path(tool: str, path_value: str) -> ToolDispatchError:
    return ToolDispatchError(
        code="INVALID_PARAMS",
        message=f"{tool} path is not a readable file: {path_value}",
    )


def _text_argument(
    config: ServiceConfig, arguments: dict[str, object], tool: str
) -> bytes | None:
    """Read text from ``text`` or a workspace ``path``; None when neither is given."""
    text_value = arguments.get("text")
    path_value = arguments.get("path")
    if text_value is not None and path_value is not None:
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} accepts either text or path, not both.",
        )
    if text_value is not None:
        if not isinstance(text_value, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS", message=f"{tool} text must be a string."
            )
        data = text_value.encode("utf-8")
    elif path_value is not None:
        if not isinstance(path_value, str) or not path_value:
            raise ToolDispatchError(
                code="INVALID_PARAMS", message=f"{tool} path must be a non-empty string."
            )
        resolved = resolve_workspace_path(config.root, path_value)
        if not resolved.is_file():
            raise _unreadable_path(tool, path_value)
        try:
            enforce_byte_count_limit(resolved.stat().st_size, config.limits)
            data = resolved.read_bytes()
        except OSError as error:
            raise _unreadable_path(tool, path_value) from error
    else:
        return None
    enforce_text_size_limit(data, config.limits)
    return data


def _status_handler(
    workspace: ItemWorkspace,
    config: ServiceConfig,
    registry: ToolRegistry,
) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        return {
            "root": str(config.root),
            "mirror_dir": str(config.mirror.mirror_dir),
            "live_items": [item_summary(item) for item in workspace.items()],
            "tools": registry.describe(),
            "effective_config": config.to_public_dict(),
        }

    return handler


def _expose_handler(workspace: ItemWorkspace, config: ServiceConfig) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        data = _text_argument(config, arguments, "mirror.expose")
        if data is None:
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="mirror.expose requires text or path.",
            )
        suffix_value = arguments.get("suffix")
        if suffix_value is not None:
            if not isinstance(suffix_value, str):
                raise ToolDispatchError(
                    code="INVALID_PARAMS", message="mirror.expose suffix must be a string."
                )
            if "/" in suffix_value or "\\" in suffix_value:
                raise ToolDispatchError(
                    code="INVALID_PARAMS",
                    message="mirror.expose suffix must not contain path separators.",
                )
        overwrite_value = arguments.get("overwrite")
        if overwrite_value is not None and not isinstance(overwrite_value, bool):
            raise ToolDispatchError(
                code="INVALID_PARAMS", message="mirror.expose overwrite must be a boolean."
            )
        item = workspace.expose(data, suffix=suffix_value, overwrite=overwrite_value)
        text, _ = item.get_current_text()
        return {**item_summary(item), "text": _decode(text)}

    return handler


def _poll_handler(workspace: ItemWorkspace) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        if arguments.get("item_id") is not None:
            item = _require_item(workspace, arguments, "mirror.poll")
            changed = [item] if item.poll_for_changes() else []
            polled = 1
        else:
            changed = workspace.poll_all()
            polled = len(workspace.items())
        return {
            "polled": polled,
            "changed": [item.mirror_path.name for item in changed],
        }

    return handler


def _text_handler(workspace: ItemWorkspace) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        item = _require_item(workspace, arguments, "mirror.text")
        text, _ = item.get_current_text()
        return {**item_summary(item), "text": _decode(text)}

    return handler


def _open_handler(workspace: ItemWorkspace) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        item = _require_item(workspace, arguments, "mirror.open")
        foreground_value = arguments.get("foreground", True)
        if not isinstance(foreground_value, bool):
            raise ToolDispatchError(
                code="INVALID_PARAMS", message="mirror.open foreground must be a boolean."
            )
        item.open_in_editor(foreground=foreground_value)
        return {
            "item_id": item.mirror_path.name,
            "path": str(item.mirror_path),
            "foreground": foreground_value,
        }

    return handler


def _discard_handler(workspace: ItemWorkspace) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        item = _require_item(workspace, arguments, "mirror.discard")
        workspace.discard(item)
        return {"item_id": item.mirror_path.name, "discarded": True}

    return handler


def _sections_handler(workspace: ItemWorkspace, config: ServiceConfig) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        if arguments.get("item_id") is not None:
            item = _require_item(workspace, arguments, "text.sections")
            data, _ = item.get_current_text()
        else:
            loaded = _text_argument(config, arguments, "text.sections")
            if loaded is None:
                raise ToolDispatchError(
                    code="INVALID_PARAMS",
                    message="text.sections requires item_id, text, or path.",
                )
            data = loaded

        markers_value = arguments.get("markers")
        markers: tuple[bytes, ...]
        if markers_value is None:
            markers = SHADER_STAGE_MARKERS
        else:
            if not isinstance(markers_value, list) or not all(
                isinstance(marker, str) for marker in markers_value
            ):
                raise ToolDispatchError(
                    code="INVALID_PARAMS",
                    message="text.sections markers must be a list of strings.",
                )
            markers = tuple(marker.encode("utf-8") for marker in markers_value)

        sectioner = TextSectioner(data, markers)
        sections: list[dict[str, object]] = []
        for index, section in enumerate(sectioner):
            sections.append(
                {
                    "index": index,
                    "marker_index": section.marker_index,
                    "marker": _decode(sectioner.markers[section.marker_index]),
                    "offset": section.offset,
                    "length": section.length,
                    "text": _decode(sectioner.section_bytes(index)),
                }
            )
        return {"count": sectioner.count(), "sections": sections}

    return handler


def _events_handler(
    read_events: Callable[[str | None, int], list[dict[str, object]]],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        since_value = arguments.get("since")
        limit_value = arguments.get("limit", 50)

        since: str | None = since_value if isinstance(since_value, str) else None
        limit = limit_value if isinstance(limit_value, int) else 50
        if limit < 1:
            limit = 1
        if limit > MAX_EVENTS_PER_READ:
            limit = MAX_EVENTS_PER_READ

        return {"events": read_events(since, limit)}

    return handler
