"""Live camera kaleidoscope with seamless repeat tiles."""

from mangankyo.config import SessionConfig, clamp_scale
from mangankyo.core import (
    Frame,
    OutputSurface,
    PatternTile,
    TriangleTile,
    compose_pattern,
    extract_triangle,
)
from mangankyo.errors import (
    AcquisitionError,
    MangankyoError,
    PreconditionError,
    RenderInvariantViolation,
)
from mangankyo.io.exporter import ExportRequest, Exporter
from mangankyo.render import RenderLoop
from mangankyo.sources import (
    ArrayFrameSource,
    CameraSource,
    SourceManager,
    StaticImageSource,
)

__version__ = "0.1.0"
__all__ = [
    "SessionConfig",
    "clamp_scale",
    "Frame",
    "TriangleTile",
    "PatternTile",
    "OutputSurface",
    "extract_triangle",
    "compose_pattern",
    "MangankyoError",
    "AcquisitionError",
    "PreconditionError",
    "RenderInvariantViolation",
    "ExportRequest",
    "Exporter",
    "RenderLoop",
    "ArrayFrameSource",
    "CameraSource",
    "StaticImageSource",
    "SourceManager",
]
