from __future__ import annotations

from pathlib import Path

from edit_mirror.items import RESOLUTION_DISK_OVERRIDE, RESOLUTION_GENERATED, EditableTextItem
from edit_mirror.logging import JsonlEventLogger


def _item(tmp_path: Path, logger: JsonlEventLogger | None = None) -> EditableTextItem:
    return EditableTextItem(
        b"//!!GLSLF\nvoid main() { gl_FragColor = vec4(1.0); }\n",
        prefix=f"{tmp_path}/",
        suffix=".fsh",
        event_logger=logger,
        sleep=lambda _: None,
    )


def test_poll_adopts_settled_external_edit(tmp_path: Path) -> None:
    item = _item(tmp_path)
    edited = b"//!!GLSLF\nvoid main() { gl_FragColor = vec4(0.5, 0.5, 0.5, 1.0); }\n"
    item.mirror_path.write_bytes(edited)

    assert item.poll_for_changes() is True

    assert item.resolution == RESOLUTION_DISK_OVERRIDE
    assert item.get_current_text() == (edited, len(edited))
    assert item.poll_for_changes() is False


def test_poll_without_edit_keeps_generated_text(tmp_path: Path) -> None:
    item = _item(tmp_path)

    assert item.poll_for_changes() is False
    assert item.resolution == RESOLUTION_GENERATED
    assert item.get_current_text()[0] == item.original_bytes


def test_emptied_mirror_is_not_adopted(tmp_path: Path) -> None:
    logger = JsonlEventLogger(tmp_path / "events.jsonl")
    item = _item(tmp_path, logger)
    item.mirror_path.write_bytes(b"")

    assert item.poll_for_changes() is False

    assert item.get_current_text()[0] == item.original_bytes
    assert item.mirror_path.read_bytes() == item.original_bytes
    assert item.has_data() is True
    assert logger.read()[-1]["event"] == "item_edit_ignored"


def test_deleted_mirror_is_restored_from_current_text(tmp_path: Path) -> None:
    item = _item(tmp_path)
    item.mirror_path.unlink()

    assert item.poll_for_changes() is False

    assert item.mirror_path.read_bytes() == item.original_bytes


def test_emptied_mirror_keeps_adopted_edit_for_later_runs(tmp_path: Path) -> None:
    item = _item(tmp_path)
    edited = b"//!!GLSLF\nvoid main() { gl_FragColor = vec4(0.25); } // hand tuned\n"
    item.mirror_path.write_bytes(edited)
    assert item.poll_for_changes() is True

    item.mirror_path.write_bytes(b"")
    assert item.poll_for_changes() is False
    assert item.mirror_path.read_bytes() == edited

    item.mirror_path.unlink()
    assert item.poll_for_changes() is False
    assert item.mirror_path.read_bytes() == edited

    next_run = _item(tmp_path)
    assert next_run.resolution == RESOLUTION_DISK_OVERRIDE
    assert next_run.get_current_text()[0] == edited


def test_item_resolves_and_adopts_with_small_log_capacity(tmp_path: Path) -> None:
    logger = JsonlEventLogger(tmp_path / "events.jsonl", max_event_bytes=256)
    item = EditableTextItem(
        b"!!ARBfp1.0\nMOV result.color, fragment.color;\nEND\n",
        prefix=f"{tmp_path / ('d' * 200)}/",
        suffix=".fp",
        event_logger=logger,
        sleep=lambda _: None,
    )
    assert item.resolution == RESOLUTION_GENERATED

    edited = b"!!ARBfp1.0\nMOV result.color, 0.5;\nEND\n# tuned\n"
    item.mirror_path.write_bytes(edited)

    assert item.poll_for_changes() is True
    assert item.get_current_text()[0] == edited
    assert all(entry["path"] is None for entry in logger.read())
