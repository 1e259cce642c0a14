"""
Triangle geometry and the fixed 3-fold kaleidoscope placements.

Coordinates follow image convention: x to the right, y down, so a positive
rotation turns clockwise on screen.
"""

import math
from dataclasses import dataclass
from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw

# tan(60°): height of an equilateral triangle per half base
_TAN60 = math.tan(math.radians(60))


def triangle_dimensions(
    frame_width: float,
    frame_height: float,
    scale: float,
) -> tuple[float, float]:
    """
    Base and height of the sampled triangle.

    Args:
        frame_width: Frame width in pixels.
        frame_height: Frame height in pixels.
        scale: Fraction of the shorter frame side used as the base.

    Returns:
        (W, H) with ``W = min(fw, fh) * scale`` and ``H = W / 2 * tan(60°)``.
    """
    width = min(frame_width, frame_height) * scale
    return width, width / 2 * _TAN60


def triangle_vertices(width: float, height: float) -> tuple[tuple[float, float], ...]:
    """Apex, bottom-right and bottom-left corners."""
    return ((width / 2, 0.0), (width, height), (0.0, height))


@lru_cache(maxsize=16)
def triangle_mask(raster_width: int, raster_height: int) -> np.ndarray:
    """
    Boolean mask of the triangle on a ``raster_width x raster_height`` grid.

    The result is cached and read-only; copy before modifying.
    """
    img = Image.new("L", (raster_width, raster_height), 0)
    ImageDraw.Draw(img).polygon(
        triangle_vertices(raster_width, raster_height), fill=255
    )
    mask = np.asarray(img) > 0
    if not mask.any():
        # Degenerate rasters still need one sample to draw from
        mask = mask.copy()
        mask[raster_height - 1, raster_width // 2] = True
    mask.setflags(write=False)
    return mask


def triangle_inset(
    x: np.ndarray,
    y: np.ndarray,
    width: float,
    height: float,
) -> np.ndarray:
    """
    Signed distance from each point to the nearest triangle edge.

    Positive inside, zero on an edge, negative outside.
    """
    slope = 2.0 * height / width
    norm = math.sqrt(1.0 + slope * slope)
    left = (y - height + slope * x) / norm
    right = (y - slope * (x - width / 2)) / norm
    bottom = height - y
    return np.minimum(np.minimum(left, right), bottom)


@dataclass(frozen=True)
class Placement:
    """
    One stamped copy of the triangle inside the repeat tile.

    Translations are in units of the triangle base (x) and height (y).
    """

    rotate: float
    mirror_y: bool = False
    translate_x: float = 0.0
    translate_y: float = 0.0

    def matrix(self, width: float, height: float) -> np.ndarray:
        """
        3x3 affine taking triangle coordinates to tile coordinates.

        The copy is rotated about the pivot ``(W, H)`` (a third of the tile
        width, half its height), then mirrored, then translated; the triangle
        itself is stamped at ``-pivot`` so the untransformed copy lands at the
        tile origin.
        """
        theta = math.radians(self.rotate)
        cos, sin = math.cos(theta), math.sin(theta)

        to_pivot = _translation(width, height)
        rotation = np.array([[cos, -sin, 0.0], [sin, cos, 0.0], [0.0, 0.0, 1.0]])
        mirror = np.diag([1.0, -1.0 if self.mirror_y else 1.0, 1.0])
        shift = _translation(self.translate_x * width, self.translate_y * height)
        stamp = _translation(-width, -height)

        return to_pivot @ rotation @ mirror @ shift @ stamp

    def corners(self, width: float, height: float) -> np.ndarray:
        """Tile coordinates of the placed triangle's corners, shape (3, 2)."""
        points = np.array([(x, y, 1.0) for x, y in triangle_vertices(width, height)])
        return (points @ self.matrix(width, height).T)[:, :2]


def _translation(tx: float, ty: float) -> np.ndarray:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


# Drawn in order; later copies overwrite earlier ones where they overlap.
PLACEMENTS: tuple[Placement, ...] = (
    Placement(0),
    Placement(0, mirror_y=True),
    Placement(0, translate_x=1.5, translate_y=1),
    Placement(0, mirror_y=True, translate_x=1.5, translate_y=1),
    Placement(120),
    Placement(120, mirror_y=True),
    Placement(120, translate_y=-2),
    Placement(120, mirror_y=True, translate_y=2),
    Placement(120, translate_x=1.5, translate_y=1),
    Placement(240),
    Placement(240, mirror_y=True),
    Placement(240, translate_y=2),
    Placement(240, mirror_y=True, translate_y=-2),
    Placement(240, mirror_y=True, translate_x=1.5, translate_y=1),
)
