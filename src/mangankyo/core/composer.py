"""
Repeat-tile composition.

Fourteen placed copies of the triangle (three rotation classes, mirrored and
shifted into the surrounding hexagonal neighbourhood) cover a ``3W x 2H``
rectangle whose opposite edges match, so the rectangle tiles without seams.

Rather than stamping 14 transformed images every frame, the composition is
inverted once per geometry into a remap table: for each tile pixel, the
triangle pixel it shows. Each frame is then a single gather.
"""

import math
from functools import lru_cache

import numpy as np
from scipy.ndimage import distance_transform_edt

from mangankyo.core.buffers import PatternTile, TriangleTile, raster_length
from mangankyo.core.geometry import PLACEMENTS, triangle_inset, triangle_mask


@lru_cache(maxsize=4)
def _build_pattern_remap(
    width: float,
    height: float,
    raster_width: int,
    raster_height: int,
) -> np.ndarray:
    """
    Build gather indices from the triangle raster into the pattern raster.

    Every tile pixel centre is pulled back through each placement in drawing
    order; the last placement whose triangle contains it wins, matching
    draw-over compositing. Each placement only visits the pixels inside its
    bounding box. The hit is then snapped to the nearest opaque triangle
    pixel so the tile comes out fully opaque.

    Args:
        width: Triangle base W.
        height: Triangle height H.
        raster_width: Triangle raster width in pixels.
        raster_height: Triangle raster height in pixels.

    Returns:
        Read-only int32 array of the pattern raster shape holding flat
        indices into the triangle raster.
    """
    pw, ph = raster_length(3 * width), raster_length(2 * height)
    step_x = 3 * width / pw
    step_y = 2 * height / ph

    row = np.zeros((ph, pw), dtype=np.int32)
    col = np.zeros((ph, pw), dtype=np.int32)
    covered = np.zeros((ph, pw), dtype=bool)
    # Fallback for pixels no triangle claims (only possible on an edge)
    best_inset = np.full((ph, pw), -np.inf, dtype=np.float32)

    eps = 1e-4 * width
    for placement in PLACEMENTS:
        window = _pixel_window(placement.corners(width, height), step_x, step_y, pw, ph)
        if window is None:
            continue
        rows, cols = window

        # Pixel centres of the window in tile coordinates
        xs = (np.arange(cols.start, cols.stop, dtype=np.float32) + 0.5) * np.float32(step_x)
        ys = (np.arange(rows.start, rows.stop, dtype=np.float32) + 0.5) * np.float32(step_y)
        ys = ys[:, np.newaxis]

        inv = np.linalg.inv(placement.matrix(width, height)).astype(np.float32)
        px = inv[0, 0] * xs + inv[0, 1] * ys + inv[0, 2]
        py = inv[1, 0] * xs + inv[1, 1] * ys + inv[1, 2]
        inset = triangle_inset(px, py, width, height)

        # Triangle coordinates to raster cells
        cell_col = np.clip(np.floor(px * np.float32(raster_width / width)), 0, raster_width - 1)
        cell_row = np.clip(np.floor(py * np.float32(raster_height / height)), 0, raster_height - 1)

        hit = inset >= -eps
        fallback = ~hit & ~covered[rows, cols] & (inset > best_inset[rows, cols])
        take = hit | fallback

        # Basic slices are views, so these writes land in the full arrays
        row_view, col_view = row[rows, cols], col[rows, cols]
        row_view[take] = cell_row[take]
        col_view[take] = cell_col[take]
        best_view = best_inset[rows, cols]
        best_view[fallback] = inset[fallback]
        covered[rows, cols] |= hit

    del covered, best_inset

    # Nearest cell inside the mask, for every cell of the raster
    nearest_row, nearest_col = distance_transform_edt(
        ~triangle_mask(raster_width, raster_height),
        return_distances=False,
        return_indices=True,
    )
    nearest = (nearest_row * raster_width + nearest_col).astype(np.int32).ravel()

    row *= raster_width
    row += col
    del col
    index = nearest[row]

    index.setflags(write=False)
    return index


def _pixel_window(
    corners: np.ndarray,
    step_x: float,
    step_y: float,
    pattern_width: int,
    pattern_height: int,
) -> tuple[slice, slice] | None:
    """Row and column slices of the pattern pixels around a placed triangle."""
    x_min, y_min = corners.min(axis=0)
    x_max, y_max = corners.max(axis=0)

    c0 = max(0, math.floor(x_min / step_x - 0.5))
    c1 = min(pattern_width, math.ceil(x_max / step_x - 0.5) + 1)
    r0 = max(0, math.floor(y_min / step_y - 0.5))
    r1 = min(pattern_height, math.ceil(y_max / step_y - 0.5) + 1)
    if c0 >= c1 or r0 >= r1:
        return None
    return slice(r0, r1), slice(c0, c1)


def compose_pattern(triangle: TriangleTile) -> PatternTile:
    """
    Assemble the seamless repeat tile from one triangle sample.

    Args:
        triangle: Triangle of base W and height H.

    Returns:
        Opaque PatternTile of geometry ``3W x 2H``.
    """
    tw, th = triangle.size
    index = _build_pattern_remap(triangle.width, triangle.height, tw, th)

    return PatternTile(
        pixels=triangle.pixels.reshape(-1, 4)[index, :3],
        width=3 * triangle.width,
        height=2 * triangle.height,
    )
