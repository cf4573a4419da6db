from __future__ import annotations

import pytest

from edit_mirror.security import (
    MirrorLimits,
    PolicyBlockedError,
    enforce_byte_count_limit,
    enforce_text_size_limit,
)


def test_text_at_limit_is_allowed() -> None:
    enforce_text_size_limit(b"x" * 8, MirrorLimits(max_text_bytes=8))


def test_text_over_limit_is_blocked() -> None:
    with pytest.raises(PolicyBlockedError) as error:
        enforce_text_size_limit(b"x" * 9, MirrorLimits(max_text_bytes=8))

    assert error.value.reason == "Text exceeds max_text_bytes limit."


def test_byte_count_over_limit_is_blocked() -> None:
    with pytest.raises(PolicyBlockedError):
        enforce_byte_count_limit(9, MirrorLimits(max_text_bytes=8))
