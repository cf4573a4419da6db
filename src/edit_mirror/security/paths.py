"""Path resolution helpers for workspace-scoped access."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")


class PathBlockedError(Exception):
    """Raised when a requested path leaves the workspace root."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def _normalize_input(candidate: str) -> tuple[str, bool]:
    normalized = candidate.replace("\\", "/")
    if normalized.startswith("/"):
        return normalized, True
    if WINDOWS_ABSOLUTE_PATTERN.match(normalized):
        return normalized, True
    return normalized, False


def resolve_workspace_path(root: Path, candidate: str) -> Path:
    """Resolve a candidate path against the workspace root, refusing escapes."""
    resolved_root = root.resolve()
    normalized, is_absolute_style = _normalize_input(candidate)

    if not normalized:
        raise PathBlockedError(
            reason="Path is empty.",
            hint="Provide a workspace-relative path such as 'shaders/stage.glsl'.",
        )

    if is_absolute_style:
        resolved_absolute = Path(normalized).resolve(strict=False)
        if not resolved_absolute.is_relative_to(resolved_root):
            raise PathBlockedError(
                reason="Absolute path is outside the workspace root.",
                hint="Use a path located under the configured workspace root.",
            )
        return resolved_absolute

    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if any(part == ".." for part in parts):
        raise PathBlockedError(
            reason="Path traversal is blocked.",
            hint="Remove '..' segments and use a workspace-relative path.",
        )

    resolved = (resolved_root / Path(*parts)).resolve(strict=False)
    if not resolved.is_relative_to(resolved_root):
        raise PathBlockedError(
            reason="Resolved path escapes the workspace root.",
            hint="Use a path located under the configured workspace root.",
        )
    return resolved
