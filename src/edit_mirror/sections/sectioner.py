"""Single-pass splitting of composite text blobs at start-of-line markers."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

# Stage headers for concatenated shader programs. GLSL headers need the
# leading slashes so the line stays a comment for the compiler.
SHADER_STAGE_MARKERS: tuple[bytes, ...] = (
    b"!!ARBvp",
    b"!!ARBfp",
    b"//!!GLSLF",
    b"//!GLSLV",
)

Marker = bytes | str | None


class SectionIndexError(IndexError):
    """Raised when a section index is not below the section count."""


@dataclass(slots=True, frozen=True)
class TextSection:
    """A marker-tagged span of the source text, marker line included."""

    marker_index: int
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


def normalize_markers(markers: Sequence[Marker]) -> tuple[bytes, ...]:
    """Return markers up to the first sentinel (``None`` or empty) as bytes."""
    output: list[bytes] = []
    for marker in markers:
        if marker is None:
            break
        encoded = marker.encode("utf-8") if isinstance(marker, str) else bytes(marker)
        if not encoded:
            break
        output.append(encoded)
    return tuple(output)


def split_sections(text: bytes, markers: Sequence[bytes]) -> list[TextSection]:
    """Scan text line by line; the first marker matching a line start opens a section.

    Lines before the first marker belong to no section.
    """
    sections: list[TextSection] = []
    cursor = 0
    limit = len(text)
    while cursor < limit:
        newline = text.find(b"\n", cursor)
        line_end = limit if newline < 0 else newline + 1
        line_length = line_end - cursor

        found = -1
        for index, marker in enumerate(markers):
            if text.startswith(marker, cursor):
                found = index
                break

        if found >= 0:
            sections.append(TextSection(marker_index=found, offset=cursor, length=line_length))
        elif sections:
            current = sections[-1]
            sections[-1] = TextSection(
                marker_index=current.marker_index,
                offset=current.offset,
                length=current.length + line_length,
            )
        cursor = line_end
    return sections


class TextSectioner:
    """Ordered sections of one text blob, computed once at construction."""

    def __init__(
        self,
        text: bytes,
        markers: Sequence[Marker],
        text_length: int | None = None,
    ) -> None:
        if text_length is None:
            text_length = len(text)
        if text_length < 0 or text_length > len(text):
            raise ValueError(f"text_length {text_length} is outside the {len(text)}-byte text.")
        self._text = bytes(text[:text_length])
        self._markers = normalize_markers(markers)
        self._sections = tuple(split_sections(self._text, self._markers))

    @property
    def markers(self) -> tuple[bytes, ...]:
        return self._markers

    @property
    def sections(self) -> tuple[TextSection, ...]:
        return self._sections

    def count(self) -> int:
        return len(self._sections)

    def get_section(self, index: int) -> tuple[int, int, int]:
        """Return ``(offset, length, marker_index)`` for the section at index."""
        section = self._section_at(index)
        return section.offset, section.length, section.marker_index

    def section_bytes(self, index: int) -> bytes:
        section = self._section_at(index)
        return self._text[section.offset : section.end]

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self) -> Iterator[TextSection]:
        return iter(self._sections)

    def _section_at(self, index: int) -> TextSection:
        if index < 0 or index >= len(self._sections):
            raise SectionIndexError(
                f"Section index {index} out of range for {len(self._sections)} sections."
            )
        return self._sections[index]
