"""
Still-image export.

Encodes either the whole output surface or its top-left repeat tile as PNG.
Exports read the most recently completed tick; nothing is written unless a
frame has been rendered.
"""

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from mangankyo.config import EXPORT_MODES
from mangankyo.errors import PreconditionError

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "mangankyo"


@dataclass(frozen=True)
class ExportRequest:
    """Which image to export: ``display`` or ``pattern``."""

    mode: str = "display"

    def __post_init__(self):
        if self.mode not in EXPORT_MODES:
            raise ValueError(
                f"Unknown export mode {self.mode!r}, expected one of {EXPORT_MODES}"
            )


def export_filename(when: Optional[datetime] = None) -> str:
    """``mangankyo_YYYYMMDDHHmmss.png`` in local time."""
    when = when or datetime.now()
    return f"{FILENAME_PREFIX}_{when.strftime('%Y%m%d%H%M%S')}.png"


class Exporter:
    """
    Produces PNG stills from a render loop's output.

    Args:
        loop: The RenderLoop whose surface and pattern are exported.
    """

    def __init__(self, loop):
        self.loop = loop

    def _check_ready(self):
        surface = self.loop.surface
        if self.loop.frames_rendered == 0 or self.loop.pattern is None:
            raise PreconditionError("Nothing has been rendered yet")
        if surface is None or surface.released or not surface.populated:
            raise PreconditionError("Output surface is not populated")

    def render(self, request: ExportRequest) -> Image.Image:
        """
        Build the export image.

        Raises:
            PreconditionError: no frame has been rendered.
        """
        self._check_ready()
        surface = self.loop.surface

        if request.mode == "display":
            return Image.fromarray(surface.snapshot())

        tile_w, tile_h = self.loop.pattern.size
        if tile_w <= surface.width and tile_h <= surface.height:
            return Image.fromarray(surface.crop(tile_w, tile_h))
        # The surface holds less than one tile, so a tile-sized crop would run
        # past its edge. Export the whole tile instead of padding the crop; the
        # part the surface does show is identical.
        return Image.fromarray(self.loop.pattern.pixels.copy())

    def encode(self, request: ExportRequest) -> bytes:
        """PNG bytes for ``request``."""
        buffer = io.BytesIO()
        self.render(request).save(buffer, format="PNG")
        return buffer.getvalue()

    def export(
        self,
        request: ExportRequest,
        directory: Union[str, Path] = ".",
        when: Optional[datetime] = None,
    ) -> Path:
        """
        Write the export to ``directory``.

        Args:
            request: What to export.
            directory: Output directory, created if missing.
            when: Timestamp used for the filename (default: now).

        Returns:
            Path of the written PNG.
        """
        image = self.render(request)

        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        output_path = directory / export_filename(when)

        try:
            image.save(output_path, format="PNG")
        except OSError:
            output_path.unlink(missing_ok=True)
            raise

        logger.info("Exported %s image %dx%d to %s", request.mode, *image.size, output_path)
        return output_path
