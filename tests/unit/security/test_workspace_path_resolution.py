from __future__ import annotations

from pathlib import Path

import pytest

from edit_mirror.security import PathBlockedError, resolve_workspace_path


def test_relative_path_resolves_under_root(tmp_path: Path) -> None:
    resolved = resolve_workspace_path(tmp_path, "shaders\\stage.glsl")

    assert resolved == (tmp_path / "shaders" / "stage.glsl").resolve()


def test_path_traversal_is_blocked(tmp_path: Path) -> None:
    with pytest.raises(PathBlockedError) as error:
        resolve_workspace_path(tmp_path, "../outside.txt")

    assert error.value.reason == "Path traversal is blocked."


def test_empty_path_is_blocked(tmp_path: Path) -> None:
    with pytest.raises(PathBlockedError) as error:
        resolve_workspace_path(tmp_path, "")

    assert error.value.reason == "Path is empty."


def test_absolute_path_outside_root_is_blocked(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    outside_file = tmp_path / "outside.txt"
    outside_file.write_text("x", encoding="utf-8")

    with pytest.raises(PathBlockedError) as error:
        resolve_workspace_path(root, str(outside_file))

    assert error.value.reason == "Absolute path is outside the workspace root."


def test_symlink_escape_is_blocked(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    outside = tmp_path / "outside-target"
    outside.mkdir()
    (outside / "leak.txt").write_text("secret", encoding="utf-8")
    (root / "link").symlink_to(outside, target_is_directory=True)

    with pytest.raises(PathBlockedError) as error:
        resolve_workspace_path(root, "link/leak.txt")

    assert error.value.reason == "Resolved path escapes the workspace root."
