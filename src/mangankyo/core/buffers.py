"""
Image buffers passed between pipeline stages.

All buffers are numpy arrays in (rows, columns, channels) order. Tiles carry
their exact floating-point geometry alongside the raster, since the raster is
rounded to whole pixels but the tiling ratio must stay exact.
"""

from dataclasses import dataclass

import numpy as np


def raster_length(value: float) -> int:
    """Whole-pixel size for a geometric length (never below one pixel)."""
    return max(1, int(round(value)))


@dataclass(frozen=True)
class Frame:
    """One RGB sample from a frame source."""

    pixels: np.ndarray  # (h, w, 3) uint8

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 3:
            raise ValueError(f"Frame pixels must be (h, w, 3), got {self.pixels.shape}")
        if self.pixels.shape[0] == 0 or self.pixels.shape[1] == 0:
            raise ValueError("Frame must not be empty")

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


@dataclass(frozen=True)
class TriangleTile:
    """
    Equilateral-triangle sample of a frame.

    ``width``/``height`` are the exact base and height; ``pixels`` is an
    RGBA raster of ``raster_length(width) x raster_length(height)`` that is
    transparent outside the triangle.
    """

    pixels: np.ndarray  # (th, tw, 4) uint8
    width: float
    height: float

    @property
    def size(self) -> tuple[int, int]:
        """Raster (width, height) in pixels."""
        return self.pixels.shape[1], self.pixels.shape[0]


@dataclass(frozen=True)
class PatternTile:
    """Opaque, edge-seamless repeat unit of ``3W x 2H``."""

    pixels: np.ndarray  # (ph, pw, 3) uint8
    width: float
    height: float

    @property
    def size(self) -> tuple[int, int]:
        """Raster (width, height) in pixels."""
        return self.pixels.shape[1], self.pixels.shape[0]
