"""Structured event logging utilities."""

from .events import (
    MIN_EVENT_BYTES,
    JsonlEventLogger,
    MirrorEvent,
    OversizedInputError,
    describe_payload,
    sanitize_arguments,
    utc_timestamp,
)

__all__ = [
    "MIN_EVENT_BYTES",
    "JsonlEventLogger",
    "MirrorEvent",
    "OversizedInputError",
    "describe_payload",
    "sanitize_arguments",
    "utc_timestamp",
]
