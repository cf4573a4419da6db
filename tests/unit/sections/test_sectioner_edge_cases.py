from __future__ import annotations

import pytest

from edit_mirror.sections import SHADER_STAGE_MARKERS, SectionIndexError, TextSectioner


def test_final_marker_line_without_newline_closes_at_end() -> None:
    text = b"AAA\nbody\nBBB"

    sectioner = TextSectioner(text, [b"AAA", b"BBB"])

    assert sectioner.count() == 2
    assert sectioner.get_section(1) == (9, 3, 1)
    assert sectioner.section_bytes(1) == b"BBB"


def test_trailing_body_line_without_newline_extends_section() -> None:
    text = b"AAA\nlast line"

    sectioner = TextSectioner(text, [b"AAA"])

    assert sectioner.get_section(0) == (0, len(text), 0)


def test_first_listed_marker_wins_over_longer_match() -> None:
    text = b"!!ARBvp1.0\nMOV\n"

    short_first = TextSectioner(text, [b"!!ARB", b"!!ARBvp"])
    long_first = TextSectioner(text, [b"!!ARBvp", b"!!ARB"])

    assert short_first.get_section(0)[2] == 0
    assert long_first.get_section(0)[2] == 0
    assert short_first.markers == (b"!!ARB", b"!!ARBvp")


def test_marker_must_start_the_line() -> None:
    text = b"AAA\n  AAA indented\nxAAA\n"

    sectioner = TextSectioner(text, [b"AAA"])

    assert sectioner.count() == 1
    assert sectioner.section_bytes(0) == text


def test_repeated_marker_opens_new_section_each_time() -> None:
    text = b"AAA\none\nAAA\ntwo\n"

    sectioner = TextSectioner(text, [b"AAA"])

    assert [sectioner.section_bytes(i) for i in range(sectioner.count())] == [
        b"AAA\none\n",
        b"AAA\ntwo\n",
    ]


def test_marker_list_stops_at_sentinel() -> None:
    text = b"AAA\nfoo\nBBB\nbar\n"

    sectioner = TextSectioner(text, [b"AAA", None, b"BBB"])

    assert sectioner.markers == (b"AAA",)
    assert sectioner.count() == 1
    assert sectioner.section_bytes(0) == text


def test_empty_marker_acts_as_sentinel() -> None:
    sectioner = TextSectioner(b"AAA\n", ["AAA", "", "BBB"])

    assert sectioner.markers == (b"AAA",)


def test_text_length_limits_the_scan() -> None:
    text = b"AAA\nfoo\nBBB\nbar\n"

    sectioner = TextSectioner(text, [b"AAA", b"BBB"], text_length=8)

    assert sectioner.count() == 1
    assert sectioner.get_section(0) == (0, 8, 0)


def test_text_length_outside_buffer_is_rejected() -> None:
    with pytest.raises(ValueError, match="text_length"):
        TextSectioner(b"AAA\n", [b"AAA"], text_length=10)


def test_no_marker_anywhere_yields_no_sections() -> None:
    assert TextSectioner(b"one\ntwo\n", [b"AAA"]).count() == 0


@pytest.mark.parametrize("index", [2, 5, -1])
def test_out_of_range_index_raises(index: int) -> None:
    sectioner = TextSectioner(b"AAA\nBBB\n", [b"AAA", b"BBB"])

    with pytest.raises(SectionIndexError):
        sectioner.get_section(index)
    with pytest.raises(IndexError):
        sectioner.section_bytes(index)


def test_default_shader_markers_cover_documented_stages() -> None:
    assert SHADER_STAGE_MARKERS == (b"!!ARBvp", b"!!ARBfp", b"//!!GLSLF", b"//!GLSLV")
