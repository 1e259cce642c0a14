"""
Session configuration.

One immutable value holds everything the render loop reads. Changes are made
with ``SessionConfig.replace`` so every new value passes through the same
validation.
"""

import dataclasses
import math
from dataclasses import dataclass, field
from pathlib import Path

SCALE_MIN = 0.1
SCALE_MAX = 2.0
DEFAULT_SCALE = 0.5

FACING_MODES = ("front", "back")
EXPORT_MODES = ("display", "pattern")

# Browser-style facing names map onto ours
_FACING_ALIASES = {
    "front": "front",
    "user": "front",
    "back": "back",
    "environment": "back",
}


def clamp_scale(value) -> float:
    """
    Coerce a requested scale into ``[SCALE_MIN, SCALE_MAX]``.

    Non-numeric, NaN and non-positive values fall back to ``DEFAULT_SCALE``.
    """
    try:
        scale = float(value)
    except (TypeError, ValueError):
        return DEFAULT_SCALE
    if not math.isfinite(scale) or scale <= 0:
        return DEFAULT_SCALE
    return min(max(scale, SCALE_MIN), SCALE_MAX)


def normalize_facing(value: str) -> str:
    """Map a facing name (including ``user``/``environment``) to front/back."""
    try:
        return _FACING_ALIASES[str(value).lower()]
    except KeyError:
        raise ValueError(
            f"Unknown facing mode {value!r}, expected one of {FACING_MODES}"
        ) from None


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for one viewing session."""

    scale: float = DEFAULT_SCALE
    facing_mode: str = "front"

    # Viewport, fixed for the session
    width: int = 1280
    height: int = 720
    fps: int = 60

    # Mode used by the quick-export key
    export_mode: str = "display"
    output_dir: Path = field(default_factory=Path.cwd)

    def __post_init__(self):
        object.__setattr__(self, "scale", clamp_scale(self.scale))
        object.__setattr__(self, "facing_mode", normalize_facing(self.facing_mode))
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Viewport must be positive, got {self.width}x{self.height}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if self.export_mode not in EXPORT_MODES:
            raise ValueError(
                f"Unknown export mode {self.export_mode!r}, expected one of {EXPORT_MODES}"
            )

    def replace(self, **changes) -> "SessionConfig":
        """Return a validated copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)

    @property
    def other_facing(self) -> str:
        return "back" if self.facing_mode == "front" else "front"
