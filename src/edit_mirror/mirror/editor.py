"""External editor launch for mirror files."""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from edit_mirror.config import EditorSettings

SpawnFn = Callable[[list[str]], object]


def _spawn_detached(command: list[str]) -> object:
    return subprocess.Popen(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


class EditorLauncher:
    """Starts the configured editor on a path and returns immediately.

    The launcher never waits on the editor process; edits come back through
    mirror polling only.
    """

    def __init__(
        self,
        settings: EditorSettings | None = None,
        spawn: SpawnFn = _spawn_detached,
    ) -> None:
        self._settings = settings or EditorSettings()
        self._spawn = spawn

    def build_command(self, path: Path, foreground: bool = True) -> list[str]:
        """Return the argv used to open path."""
        command: list[str] = list(self._settings.command)
        if not foreground and self._settings.background_flag:
            command.append(self._settings.background_flag)
        command.append(str(path))
        return command

    def open(self, path: Path, foreground: bool = True) -> Sequence[str]:
        command = self.build_command(path, foreground=foreground)
        self._spawn(command)
        return command
