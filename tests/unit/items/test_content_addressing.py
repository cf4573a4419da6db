from __future__ import annotations

import re
from pathlib import Path

import pytest

from edit_mirror.items import (
    CONTENT_HASH_HEX_LENGTH,
    EditableTextItem,
    content_hash,
    mirror_path_for,
)


def test_hash_is_deterministic_fixed_length_lowercase_hex() -> None:
    text = b"//!!GLSLV\nvoid main() {}\n"

    first = content_hash(text)
    second = content_hash(bytes(text))

    assert first == second
    assert len(first) == CONTENT_HASH_HEX_LENGTH
    assert re.fullmatch(r"[0-9a-f]{32}", first)


def test_known_digests() -> None:
    assert content_hash(b"") == "d41d8cd98f00b204e9800998ecf8427e"
    assert content_hash(b"abc") == "900150983cd24fb0d6963f7d28e17f72"


def test_mirror_path_concatenates_prefix_digest_suffix(tmp_path: Path) -> None:
    digest = content_hash(b"abc")

    assert mirror_path_for(digest, f"{tmp_path}/", ".fsh") == tmp_path / f"{digest}.fsh"
    assert mirror_path_for(digest, f"{tmp_path}/shader_") == tmp_path / f"shader_{digest}"


def test_identical_text_maps_to_identical_mirror_path(tmp_path: Path) -> None:
    prefix = f"{tmp_path}/"
    first = EditableTextItem(b"same generated text", prefix=prefix, suffix=".vsh")
    second = EditableTextItem(b"same generated text", prefix=prefix, suffix=".vsh")
    other = EditableTextItem(b"different generated text", prefix=prefix, suffix=".vsh")

    assert first.content_hash == second.content_hash
    assert first.mirror_path == second.mirror_path
    assert other.mirror_path != first.mirror_path


def test_size_limits_the_cloned_buffer(tmp_path: Path) -> None:
    item = EditableTextItem(b"abcdef", size=3, prefix=f"{tmp_path}/")

    assert item.original_bytes == b"abc"
    assert item.get_current_text() == (b"abc", 3)
    assert item.content_hash == content_hash(b"abc")


def test_size_beyond_buffer_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="size 7"):
        EditableTextItem(b"abcdef", size=7, prefix=f"{tmp_path}/")
