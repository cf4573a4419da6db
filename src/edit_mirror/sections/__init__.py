"""Marker-driven sectioning of composite text blobs."""

from .sectioner import (
    SHADER_STAGE_MARKERS,
    SectionIndexError,
    TextSection,
    TextSectioner,
    normalize_markers,
    split_sections,
)

__all__ = [
    "SHADER_STAGE_MARKERS",
    "SectionIndexError",
    "TextSection",
    "TextSectioner",
    "normalize_markers",
    "split_sections",
]
