"""
Equilateral-triangle sampling from a video frame.

The sampling window is a square on the frame's shorter side, centred along
the longer side, scaled so that its width becomes the triangle base. Pixels
outside the triangle are cleared to transparent black.
"""

import numpy as np
from PIL import Image

from mangankyo.core.buffers import Frame, TriangleTile, raster_length
from mangankyo.core.geometry import triangle_dimensions, triangle_mask


def crop_offsets(frame_width: int, frame_height: int) -> tuple[float, float]:
    """Source offset that centres the square window on the shorter axis."""
    return (
        max(0.0, (frame_width - frame_height) / 2),
        max(0.0, (frame_height - frame_width) / 2),
    )


def extract_triangle(frame: Frame, scale: float) -> TriangleTile:
    """
    Cut the triangle sample out of ``frame``.

    Args:
        frame: Current frame.
        scale: Base width as a fraction of the shorter frame side. Must
            already be validated; see ``mangankyo.config.clamp_scale``.

    Returns:
        TriangleTile whose raster is transparent outside the triangle.
    """
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")

    width, height = triangle_dimensions(frame.width, frame.height, scale)
    tw, th = raster_length(width), raster_length(height)
    offset_x, offset_y = crop_offsets(frame.width, frame.height)

    # Output pixel -> triangle coordinates -> frame coordinates
    affine = (
        width / (tw * scale), 0.0, offset_x,
        0.0, height / (th * scale), offset_y,
    )
    src = Image.fromarray(np.ascontiguousarray(frame.pixels))
    window = src.transform((tw, th), Image.AFFINE, affine, resample=Image.BILINEAR)

    mask = triangle_mask(tw, th)
    rgba = np.zeros((th, tw, 4), dtype=np.uint8)
    rgba[..., :3] = np.asarray(window)
    rgba[..., 3] = 255
    rgba[~mask] = 0

    return TriangleTile(pixels=rgba, width=width, height=height)
