"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from edit_mirror.logging import MIN_EVENT_BYTES
from edit_mirror.security import MirrorLimits

CONFIG_FILENAME = "edit_mirror.toml"

POLL_INTERVAL_MS_CAP = 10_000
SETTLE_SAMPLES_CAP = 100
MAX_TEXT_BYTES_CAP = 16 * 1024 * 1024
MAX_EVENT_BYTES_CAP = 64 * 1024
MAX_TOTAL_BYTES_PER_RESPONSE_CAP = 32 * 1024 * 1024

DEFAULT_MIRROR_DIR = ".edit_mirror/mirrors"
DEFAULT_SUFFIX = ".txt"
DEFAULT_POLL_INTERVAL_MS = 100
DEFAULT_SETTLE_SAMPLES = 3
DEFAULT_MIN_OVERRIDE_BYTES = 10
DEFAULT_EDITOR_COMMAND = ("bbedit",)
DEFAULT_BACKGROUND_FLAG = "-b"


@dataclass(slots=True, frozen=True)
class WatchSettings:
    """Settle-window parameters for external change detection."""

    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    settle_samples: int = DEFAULT_SETTLE_SAMPLES

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0


@dataclass(slots=True, frozen=True)
class MirrorSettings:
    """Where mirror files live and how they are named."""

    mirror_dir: Path
    suffix: str


@dataclass(slots=True, frozen=True)
class OverrideSettings:
    """Authorship resolution between generated text and on-disk edits."""

    min_bytes: int = DEFAULT_MIN_OVERRIDE_BYTES
    force_overwrite: bool = False


@dataclass(slots=True, frozen=True)
class EditorSettings:
    """External editor invocation."""

    command: tuple[str, ...] = DEFAULT_EDITOR_COMMAND
    background_flag: str | None = DEFAULT_BACKGROUND_FLAG


@dataclass(slots=True, frozen=True)
class ServiceConfig:
    """Fully merged service configuration."""

    root: Path
    data_dir: Path
    limits: MirrorLimits
    mirror: MirrorSettings
    watch: WatchSettings
    override: OverrideSettings
    editor: EditorSettings

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for tool responses."""
        return {
            "root": str(self.root),
            "data_dir": str(self.data_dir),
            "limits": {
                "max_text_bytes": self.limits.max_text_bytes,
                "max_event_bytes": self.limits.max_event_bytes,
                "max_total_bytes_per_response": self.limits.max_total_bytes_per_response,
            },
            "mirror": {
                "dir": str(self.mirror.mirror_dir),
                "suffix": self.mirror.suffix,
            },
            "watch": {
                "poll_interval_ms": self.watch.poll_interval_ms,
                "settle_samples": self.watch.settle_samples,
            },
            "override": {
                "min_bytes": self.override.min_bytes,
                "force_overwrite": self.override.force_overwrite,
            },
            "editor": {
                "command": list(self.editor.command),
                "background_flag": self.editor.background_flag,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    mirror_dir: Path | None = None
    suffix: str | None = None
    poll_interval_ms: int | None = None
    settle_samples: int | None = None
    force_overwrite: bool | None = None
    max_text_bytes: int | None = None


def default_config(root: Path) -> ServiceConfig:
    """Build default config for a given workspace root."""
    resolved_root = root.resolve()
    return ServiceConfig(
        root=resolved_root,
        data_dir=resolved_root / ".edit_mirror",
        limits=MirrorLimits(),
        mirror=MirrorSettings(
            mirror_dir=resolved_root / DEFAULT_MIRROR_DIR,
            suffix=DEFAULT_SUFFIX,
        ),
        watch=WatchSettings(),
        override=OverrideSettings(),
        editor=EditorSettings(),
    )


def load_config_file(root: Path) -> dict[str, object]:
    """Load optional edit_mirror.toml from the workspace root."""
    config_path = root / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILENAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_str(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"Config field '{name}' must be a string.")
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def merge_config(
    base: ServiceConfig, payload: dict[str, object], overrides: CliOverrides
) -> ServiceConfig:
    """Merge defaults, workspace config, then CLI/startup overrides."""
    mirror_payload = _get_table(payload, "mirror")
    watch_payload = _get_table(payload, "watch")
    override_payload = _get_table(payload, "override")
    editor_payload = _get_table(payload, "editor")
    limits_payload = _get_table(payload, "limits")

    mirror_dir = base.mirror.mirror_dir
    if "dir" in mirror_payload:
        raw_dir = _optional_str(mirror_payload["dir"], "mirror.dir", "")
        if not raw_dir:
            raise ValueError("Config field 'mirror.dir' must be a non-empty string.")
        mirror_dir = (base.root / raw_dir).resolve()
    suffix = _optional_str(mirror_payload.get("suffix"), "mirror.suffix", base.mirror.suffix)

    watch = WatchSettings(
        poll_interval_ms=_optional_positive_int_with_cap(
            watch_payload.get("poll_interval_ms"),
            "watch.poll_interval_ms",
            base.watch.poll_interval_ms,
            POLL_INTERVAL_MS_CAP,
        ),
        settle_samples=_optional_positive_int_with_cap(
            watch_payload.get("settle_samples"),
            "watch.settle_samples",
            base.watch.settle_samples,
            SETTLE_SAMPLES_CAP,
        ),
    )

    min_bytes = override_payload.get("min_bytes", base.override.min_bytes)
    if not isinstance(min_bytes, int) or isinstance(min_bytes, bool) or min_bytes < 0:
        raise ValueError("Config field 'override.min_bytes' must be a non-negative integer.")
    override = OverrideSettings(
        min_bytes=min_bytes,
        force_overwrite=_optional_bool(
            override_payload.get("force_overwrite"),
            "override.force_overwrite",
            base.override.force_overwrite,
        ),
    )

    command = base.editor.command
    if "command" in editor_payload:
        command = _tuple_of_strings(editor_payload["command"], "editor", "command")
        if not command:
            raise ValueError("Config field 'editor.command' must not be empty.")
    background_flag = base.editor.background_flag
    if "background_flag" in editor_payload:
        raw_flag = _optional_str(
            editor_payload["background_flag"], "editor.background_flag", ""
        )
        background_flag = raw_flag or None

    limits = MirrorLimits(
        max_text_bytes=_optional_positive_int_with_cap(
            limits_payload.get("max_text_bytes"),
            "limits.max_text_bytes",
            base.limits.max_text_bytes,
            MAX_TEXT_BYTES_CAP,
        ),
        max_event_bytes=_optional_positive_int_with_cap(
            limits_payload.get("max_event_bytes"),
            "limits.max_event_bytes",
            base.limits.max_event_bytes,
            MAX_EVENT_BYTES_CAP,
        ),
        max_total_bytes_per_response=_optional_positive_int_with_cap(
            limits_payload.get("max_total_bytes_per_response"),
            "limits.max_total_bytes_per_response",
            base.limits.max_total_bytes_per_response,
            MAX_TOTAL_BYTES_PER_RESPONSE_CAP,
        ),
    )
    if limits.max_event_bytes < MIN_EVENT_BYTES:
        raise ValueError(
            f"Config field 'limits.max_event_bytes' must be >= {MIN_EVENT_BYTES}."
        )

    merged = ServiceConfig(
        root=base.root,
        data_dir=base.data_dir,
        limits=limits,
        mirror=MirrorSettings(mirror_dir=mirror_dir, suffix=suffix),
        watch=watch,
        override=override,
        editor=EditorSettings(command=command, background_flag=background_flag),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ServiceConfig, overrides: CliOverrides) -> ServiceConfig:
    """Apply startup overrides at highest precedence."""
    watch = WatchSettings(
        poll_interval_ms=_optional_positive_int_with_cap(
            overrides.poll_interval_ms,
            "overrides.poll_interval_ms",
            config.watch.poll_interval_ms,
            POLL_INTERVAL_MS_CAP,
        ),
        settle_samples=_optional_positive_int_with_cap(
            overrides.settle_samples,
            "overrides.settle_samples",
            config.watch.settle_samples,
            SETTLE_SAMPLES_CAP,
        ),
    )
    limits = MirrorLimits(
        max_text_bytes=_optional_positive_int_with_cap(
            overrides.max_text_bytes,
            "overrides.max_text_bytes",
            config.limits.max_text_bytes,
            MAX_TEXT_BYTES_CAP,
        ),
        max_event_bytes=config.limits.max_event_bytes,
        max_total_bytes_per_response=config.limits.max_total_bytes_per_response,
    )
    override = OverrideSettings(
        min_bytes=config.override.min_bytes,
        force_overwrite=(
            overrides.force_overwrite
            if overrides.force_overwrite is not None
            else config.override.force_overwrite
        ),
    )
    mirror = MirrorSettings(
        mirror_dir=(overrides.mirror_dir or config.mirror.mirror_dir).resolve(),
        suffix=overrides.suffix if overrides.suffix is not None else config.mirror.suffix,
    )
    data_dir = overrides.data_dir or config.data_dir
    return ServiceConfig(
        root=config.root,
        data_dir=data_dir.resolve(),
        limits=limits,
        mirror=mirror,
        watch=watch,
        override=override,
        editor=config.editor,
    )


def load_effective_config(root: Path, overrides: CliOverrides | None = None) -> ServiceConfig:
    """Load effective config using merge order defaults -> workspace config -> overrides."""
    resolved_root = root.resolve()
    base = default_config(resolved_root)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
