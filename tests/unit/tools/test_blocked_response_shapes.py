from __future__ import annotations

from pathlib import Path

from edit_mirror.config import CliOverrides
from edit_mirror.server import create_server


def test_path_traversal_is_blocked(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))

    response = server.handle_payload(
        {"id": "b1", "method": "text.sections", "params": {"path": "../outside.txt"}}
    )

    assert response["ok"] is False
    assert response["blocked"] is True
    assert response["result"]["reason"] == "Path traversal is blocked."
    assert response["error"]["code"] == "BLOCKED"


def test_oversized_text_is_blocked(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path), cli_overrides=CliOverrides(max_text_bytes=16))

    response = server.handle_payload(
        {"id": "b2", "method": "mirror.expose", "params": {"text": "x" * 17}}
    )

    assert response["blocked"] is True
    assert response["result"]["reason"] == "Text exceeds max_text_bytes limit."
    assert server.workspace.items() == ()


def test_suffix_with_separator_is_rejected(tmp_path: Path) -> None:
    server = create_server(root=str(tmp_path))

    response = server.handle_payload(
        {
            "id": "b3",
            "method": "mirror.expose",
            "params": {"text": "generated", "suffix": "/../../escape"},
        }
    )

    assert response["ok"] is False
    assert response["blocked"] is False
    assert response["error"]["code"] == "INVALID_PARAMS"


def test_oversized_file_is_blocked_before_reading(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "big.txt").write_text("x" * 64, encoding="utf-8")
    server = create_server(root=str(tmp_path), cli_overrides=CliOverrides(max_text_bytes=16))

    def fail_read(self: Path) -> bytes:
        raise AssertionError(f"{self} should not be read")

    monkeypatch.setattr(Path, "read_bytes", fail_read)

    response = server.handle_payload(
        {"id": "b3", "method": "mirror.expose", "params": {"path": "big.txt"}}
    )

    assert response["blocked"] is True
    assert response["result"]["reason"] == "Text exceeds max_text_bytes limit."
