"""Geometric transform pipeline: triangle sampling, tile composition, fill."""

from mangankyo.core.buffers import Frame, PatternTile, TriangleTile
from mangankyo.core.composer import compose_pattern
from mangankyo.core.surface import OutputSurface
from mangankyo.core.triangle import extract_triangle

__all__ = [
    "Frame",
    "TriangleTile",
    "PatternTile",
    "extract_triangle",
    "compose_pattern",
    "OutputSurface",
]
