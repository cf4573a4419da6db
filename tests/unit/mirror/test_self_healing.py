from __future__ import annotations

from pathlib import Path

from edit_mirror.logging import JsonlEventLogger
from edit_mirror.mirror import FileMirror


def test_deleted_mirror_is_recreated_without_reporting_change(tmp_path: Path) -> None:
    target = tmp_path / "m.txt"
    mirror = FileMirror(target, sleep=lambda _: None)
    mirror.write(b"last known buffer\n")
    target.unlink()

    assert mirror.poll_for_changes() is False

    assert target.read_bytes() == b"last known buffer\n"
    assert mirror.exists is True
    assert mirror.poll_for_changes() is False


def test_recreation_is_logged(tmp_path: Path) -> None:
    target = tmp_path / "m.txt"
    logger = JsonlEventLogger(tmp_path / "events.jsonl")
    mirror = FileMirror(target, event_logger=logger, sleep=lambda _: None)
    mirror.write(b"buffer")
    target.unlink()

    mirror.poll_for_changes()

    events = logger.read()
    assert [event["event"] for event in events] == ["mirror_recreated"]
    assert events[0]["path"] == str(target)


def test_file_removed_during_settle_is_recreated(tmp_path: Path) -> None:
    target = tmp_path / "m.txt"

    def sleep(_: float) -> None:
        if target.exists():
            target.unlink()

    mirror = FileMirror(target, sleep=sleep)
    mirror.write(b"original")
    target.write_bytes(b"partial save")

    assert mirror.poll_for_changes() is False
    assert target.read_bytes() == b"original"
    assert mirror.get_data() == b"original"
