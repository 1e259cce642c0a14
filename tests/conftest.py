"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from mangankyo.errors import AcquisitionError
from mangankyo.sources import ArrayFrameSource


def _gradient(height: int, width: int) -> np.ndarray:
    """Smooth RGB frame: red ramps left to right, green top to bottom."""
    ys, xs = np.mgrid[0:height, 0:width]
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[..., 0] = (xs * 255 / (width - 1)).astype(np.uint8)
    frame[..., 1] = (ys * 255 / (height - 1)).astype(np.uint8)
    frame[..., 2] = 128
    return frame


@pytest.fixture
def gradient_frame() -> np.ndarray:
    """640x480 landscape gradient frame."""
    return _gradient(480, 640)


@pytest.fixture
def square_frame() -> np.ndarray:
    """200x200 frame; at scale 0.5 the triangle base is exactly 100."""
    return _gradient(200, 200)


@pytest.fixture
def noise_frame() -> np.ndarray:
    rng = np.random.default_rng(42)  # Reproducible
    return rng.integers(0, 256, (240, 320, 3), dtype=np.uint8)


class TrackedSource(ArrayFrameSource):
    """ArrayFrameSource that reports open/close to a registry."""

    def __init__(self, registry, frames, facing_mode):
        super().__init__(frames, facing_mode=facing_mode, loop=True)
        self.registry = registry

    def open(self):
        self.registry.opened(self)
        return super().open()

    def close(self):
        if self._open:
            self.registry.closed(self)
        super().close()


class SourceRegistry:
    """Source factory that records how many sources are open at once."""

    def __init__(self, frame: np.ndarray):
        self.frame = frame
        self.fail_for: set[str] = set()
        self.events: list[tuple[str, str]] = []
        self.open_sources: list[TrackedSource] = []
        self.max_open = 0

    def __call__(self, facing_mode: str) -> TrackedSource:
        if facing_mode in self.fail_for:
            raise AcquisitionError("not_found", f"no {facing_mode} camera")
        return TrackedSource(self, [self.frame], facing_mode)

    def opened(self, source: TrackedSource):
        self.open_sources.append(source)
        self.events.append(("open", source.facing_mode))
        self.max_open = max(self.max_open, len(self.open_sources))

    def closed(self, source: TrackedSource):
        self.open_sources.remove(source)
        self.events.append(("close", source.facing_mode))


@pytest.fixture
def registry(gradient_frame) -> SourceRegistry:
    return SourceRegistry(gradient_frame)
