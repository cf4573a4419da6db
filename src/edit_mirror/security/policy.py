"""Size limits policy for tool payloads."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class MirrorLimits:
    """Runtime limits for payloads crossing the tool surface."""

    max_text_bytes: int = 1024 * 1024
    max_event_bytes: int = 4 * 1024
    max_total_bytes_per_response: int = 4 * 1024 * 1024


@dataclass(slots=True, frozen=True)
class PolicyBlockedError(Exception):
    """Raised when a limits policy blocks an operation."""

    reason: str
    hint: str


def enforce_text_size_limit(text: bytes, limits: MirrorLimits) -> None:
    """Raise PolicyBlockedError when a text payload exceeds max_text_bytes."""
    enforce_byte_count_limit(len(text), limits)


def enforce_byte_count_limit(size: int, limits: MirrorLimits) -> None:
    """Check a payload size, such as a file size from stat, against max_text_bytes."""
    if size > limits.max_text_bytes:
        raise PolicyBlockedError(
            reason="Text exceeds max_text_bytes limit.",
            hint="Send a smaller text payload or increase limit via approved configuration.",
        )
