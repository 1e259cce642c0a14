"""
Display-sized output buffer filled with the repeat tile.
"""

from functools import lru_cache

import numpy as np

from mangankyo.core.buffers import PatternTile
from mangankyo.errors import RenderInvariantViolation


@lru_cache(maxsize=8)
def _tile_indices(
    height: int,
    width: int,
    tile_height: int,
    tile_width: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Row/column gather indices that repeat a tile from the origin."""
    rows = (np.arange(height) % tile_height)[:, np.newaxis]
    cols = (np.arange(width) % tile_width)[np.newaxis, :]
    return rows, cols


class OutputSurface:
    """
    RGB buffer the render loop paints into.

    Lifecycle: ``create`` once per session, ``fill_pattern`` once per tick,
    ``release`` at session end. Its size never changes.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._pixels: np.ndarray | None = np.zeros((height, width, 3), dtype=np.uint8)
        self.populated = False

    @classmethod
    def create(cls, width: int, height: int) -> "OutputSurface":
        return cls(width, height)

    @property
    def released(self) -> bool:
        return self._pixels is None

    @property
    def pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise RenderInvariantViolation("Output surface used after release")
        return self._pixels

    def fill_pattern(self, pattern: PatternTile):
        """Cover the whole surface with ``pattern`` repeated from (0, 0)."""
        tw, th = pattern.size
        rows, cols = _tile_indices(self.height, self.width, th, tw)
        np.copyto(self.pixels, pattern.pixels[rows, cols])
        self.populated = True

    def crop(self, width: int, height: int) -> np.ndarray:
        """Copy of the top-left ``width x height`` region."""
        return self.pixels[:height, :width].copy()

    def snapshot(self) -> np.ndarray:
        """Copy of the whole surface."""
        return self.pixels.copy()

    def release(self):
        self._pixels = None
        self.populated = False
