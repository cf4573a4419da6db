"""Structured JSONL event log for mirror activity."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

DEFAULT_MAX_EVENT_BYTES = 4 * 1024
# Room for the compact record written in place of an oversized one.
MIN_EVENT_BYTES = 256

MAX_LOGGED_ARGUMENTS = 32
MAX_LOGGED_NESTED_KEYS = 16
MAX_LOGGED_KEY_CHARS = 64
MAX_LOGGED_VALUE_CHARS = 512
MAX_COMPACT_VALUE_CHARS = 64


class OversizedInputError(ValueError):
    """Raised when an event line does not fit the logger's line capacity."""

    def __init__(self, size: int, capacity: int) -> None:
        super().__init__(f"Event line of {size} bytes exceeds capacity of {capacity} bytes.")
        self.size = size
        self.capacity = capacity


@dataclass(slots=True, frozen=True)
class MirrorEvent:
    """One logged mirror, item, or request event."""

    timestamp: str
    event: str
    path: str | None
    ok: bool
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def describe_payload(data: bytes) -> dict[str, object]:
    """Summarize a byte payload without recording its content."""
    return {
        "size": len(data),
        "digest": hashlib.sha256(data).hexdigest()[:12],
    }


def _bounded_key(key: object) -> str:
    text = str(key)
    if len(text) <= MAX_LOGGED_KEY_CHARS:
        return text
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:8]
    return f"{text[: MAX_LOGGED_KEY_CHARS - 9]}~{digest}"


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Sanitize tool arguments so text bodies never reach the log.

    Key names are shortened, and at most ``MAX_LOGGED_ARGUMENTS`` keys are
    recorded; the remainder is only counted.
    """
    sanitized: dict[str, object] = {}
    keys = sorted(arguments.keys(), key=str)
    for raw_key in keys[:MAX_LOGGED_ARGUMENTS]:
        value = arguments[raw_key]
        key = _bounded_key(raw_key)
        if key in {"item_id", "path", "suffix", "since"} and isinstance(value, str):
            if len(value) <= MAX_LOGGED_VALUE_CHARS:
                sanitized[key] = value
                continue
        if key in {"limit", "size"} and isinstance(value, int):
            sanitized[key] = value
            continue
        if key in {"overwrite", "foreground"} and isinstance(value, bool):
            sanitized[key] = value
            continue
        if isinstance(value, (int, float, bool)) or value is None:
            sanitized[key] = value
            continue
        if isinstance(value, str):
            sanitized[f"{key}_present"] = True
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, list):
            sanitized[f"{key}_type"] = "list"
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, dict):
            nested = sorted(value.keys(), key=str)
            sanitized[f"{key}_type"] = "dict"
            sanitized[f"{key}_keys"] = [_bounded_key(k) for k in nested[:MAX_LOGGED_NESTED_KEYS]]
            if len(nested) > MAX_LOGGED_NESTED_KEYS:
                sanitized[f"{key}_key_count"] = len(nested)
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    if len(keys) > MAX_LOGGED_ARGUMENTS:
        sanitized["omitted_argument_count"] = len(keys) - MAX_LOGGED_ARGUMENTS
    return sanitized


def _compact_event(record: MirrorEvent, line_bytes: int, keep_scalars: bool) -> MirrorEvent:
    metadata: dict[str, object] = {}
    if keep_scalars:
        for key, value in record.metadata.items():
            if isinstance(value, str) and len(value) <= MAX_COMPACT_VALUE_CHARS:
                metadata[key] = value
            elif isinstance(value, (int, float, bool)) or value is None:
                metadata[key] = value
    metadata["log_truncated"] = True
    metadata["line_bytes"] = line_bytes
    return MirrorEvent(
        timestamp=record.timestamp,
        event=record.event,
        path=None,
        ok=record.ok,
        metadata=metadata,
    )


class JsonlEventLogger:
    """Append-only JSONL event logger and bounded reader."""

    def __init__(self, path: Path, max_event_bytes: int = DEFAULT_MAX_EVENT_BYTES) -> None:
        if max_event_bytes < MIN_EVENT_BYTES:
            raise ValueError(f"max_event_bytes must be >= {MIN_EVENT_BYTES}.")
        self._path = path
        self._max_event_bytes = max_event_bytes
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def log(
        self,
        event: str,
        path: Path | str | None = None,
        ok: bool = True,
        **metadata: object,
    ) -> MirrorEvent:
        """Build and append one event stamped with the current time.

        A record too large for the line capacity is replaced by a compact one
        flagged ``log_truncated``: short scalar metadata is kept when it fits,
        otherwise only the event name and outcome.
        """
        record = MirrorEvent(
            timestamp=utc_timestamp(),
            event=event,
            path=str(path) if path is not None else None,
            ok=ok,
            metadata=dict(metadata),
        )
        try:
            self.append(record)
        except OversizedInputError as error:
            compact = _compact_event(record, error.size, keep_scalars=True)
            try:
                self.append(compact)
            except OversizedInputError:
                compact = _compact_event(record, error.size, keep_scalars=False)
                self.append(compact)
            record = compact
        return record

    def append(self, event: MirrorEvent) -> None:
        """Append an event as one JSON object per line."""
        line = json.dumps(asdict(event), sort_keys=True)
        encoded_size = len(line.encode("utf-8"))
        if encoded_size > self._max_event_bytes:
            raise OversizedInputError(size=encoded_size, capacity=self._max_event_bytes)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(line)
            handle.write("\n")

    def read(self, since: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Read recent events, optionally filtered by timestamp lower bound."""
        if limit < 1:
            return []
        entries: list[dict[str, object]] = []
        if not self._path.exists():
            return entries
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    record = json.loads(stripped)
                except json.JSONDecodeError:
                    continue
                if since is not None:
                    ts = record.get("timestamp")
                    if not isinstance(ts, str) or ts < since:
                        continue
                entries.append(record)
        if len(entries) <= limit:
            return entries
        return entries[-limit:]
