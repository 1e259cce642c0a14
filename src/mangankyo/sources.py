"""
Frame sources.

A frame source hands out the current RGB frame on each tick and reports
whether it is still running. ``SourceManager`` owns the active source and
guarantees that a new one is only opened after the previous one is closed.
"""

import abc
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from mangankyo.config import normalize_facing
from mangankyo.core.buffers import Frame
from mangankyo.errors import AcquisitionError

logger = logging.getLogger(__name__)

# Default camera index for each facing direction
DEFAULT_CAMERA_DEVICES = {"front": 0, "back": 1}


class FrameSource(abc.ABC):
    """Provider of sequential frames, e.g. a camera or a still image."""

    def __init__(self, facing_mode: str = "front"):
        self.facing_mode = normalize_facing(facing_mode)
        self.last_frame: Optional[Frame] = None

    @abc.abstractmethod
    def open(self) -> "FrameSource":
        """Start producing frames. Raises AcquisitionError on failure."""

    @abc.abstractmethod
    def read(self) -> Optional[Frame]:
        """Return the current frame, or None once the source has stopped."""

    @abc.abstractmethod
    def close(self):
        """Stop the source and free whatever it holds."""

    @property
    @abc.abstractmethod
    def is_active(self) -> bool:
        pass

    @property
    def width(self) -> int:
        return self.last_frame.width if self.last_frame is not None else 0

    @property
    def height(self) -> int:
        return self.last_frame.height if self.last_frame is not None else 0

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ArrayFrameSource(FrameSource):
    """
    Serves frames from memory.

    With ``loop=True`` the sequence repeats forever, otherwise the source
    stops after the last frame.
    """

    def __init__(
        self,
        frames: Union[np.ndarray, Sequence[np.ndarray]],
        facing_mode: str = "front",
        loop: bool = False,
    ):
        super().__init__(facing_mode)
        if isinstance(frames, np.ndarray) and frames.ndim == 3:
            frames = [frames]
        self._frames = [Frame(np.asarray(f, dtype=np.uint8)) for f in frames]
        if not self._frames:
            raise ValueError("ArrayFrameSource needs at least one frame")
        self.loop = loop
        self._index = 0
        self._open = False

    def open(self) -> "ArrayFrameSource":
        self._open = True
        self._index = 0
        return self

    def read(self) -> Optional[Frame]:
        if not self.is_active:
            return None
        frame = self._frames[self._index % len(self._frames)]
        self._index += 1
        self.last_frame = frame
        return frame

    def close(self):
        self._open = False

    @property
    def is_active(self) -> bool:
        if not self._open:
            return False
        return self.loop or self._index < len(self._frames)


class StaticImageSource(ArrayFrameSource):
    """A single image file served on every tick until closed."""

    def __init__(self, path: Union[str, Path], facing_mode: str = "front"):
        self.path = Path(path)
        try:
            with Image.open(self.path) as img:
                pixels = np.asarray(img.convert("RGB"))
        except FileNotFoundError as exc:
            raise AcquisitionError("not_found", f"Image not found: {self.path}") from exc
        except (UnidentifiedImageError, OSError) as exc:
            raise AcquisitionError("unsupported", f"Cannot read image {self.path}: {exc}") from exc
        super().__init__(pixels, facing_mode=facing_mode, loop=True)


class CameraSource(FrameSource):
    """Live camera capture through OpenCV."""

    def __init__(
        self,
        device: int = 0,
        facing_mode: str = "front",
        width: Optional[int] = None,
        height: Optional[int] = None,
    ):
        super().__init__(facing_mode)
        self.device = device
        self.requested_size = (width, height)
        self._capture = None
        self._stopped = False

    def open(self) -> "CameraSource":
        import cv2

        capture = cv2.VideoCapture(self.device)
        if not capture.isOpened():
            capture.release()
            raise AcquisitionError(
                "not_found",
                f"No camera at index {self.device} for facing mode {self.facing_mode!r}",
            )
        width, height = self.requested_size
        if width:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        if height:
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        self._capture = capture
        self._stopped = False
        logger.info("Opened camera %d (%s)", self.device, self.facing_mode)
        return self

    def read(self) -> Optional[Frame]:
        if not self.is_active:
            return None
        import cv2

        ok, bgr = self._capture.read()
        if not ok or bgr is None:
            logger.info("Camera %d stopped delivering frames", self.device)
            self._stopped = True
            return None
        frame = Frame(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))
        self.last_frame = frame
        return frame

    def close(self):
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Released camera %d", self.device)

    @property
    def is_active(self) -> bool:
        return self._capture is not None and not self._stopped


def camera_factory(devices: Optional[dict] = None) -> Callable[[str], FrameSource]:
    """Build a factory mapping a facing mode to a CameraSource."""
    devices = {**DEFAULT_CAMERA_DEVICES, **(devices or {})}

    def factory(facing_mode: str) -> FrameSource:
        facing = normalize_facing(facing_mode)
        return CameraSource(device=devices[facing], facing_mode=facing)

    return factory


@dataclass(frozen=True)
class Acquisition:
    """Outcome of opening a frame source: either ``source`` or ``error``."""

    source: Optional[FrameSource] = None
    error: Optional[AcquisitionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.source is not None

    def unwrap(self) -> FrameSource:
        if self.error is not None:
            raise self.error
        return self.source


def acquire(factory: Callable[[str], FrameSource], facing_mode: str) -> Acquisition:
    """Create and open a source, reporting failure as a value."""
    try:
        source = factory(facing_mode)
        source.open()
    except AcquisitionError as exc:
        logger.warning("Frame source acquisition failed: %s", exc)
        return Acquisition(error=exc)
    except PermissionError as exc:
        logger.warning("Frame source access denied: %s", exc)
        return Acquisition(error=AcquisitionError("permission_denied", str(exc)))
    except OSError as exc:
        logger.warning("Frame source unavailable: %s", exc)
        return Acquisition(error=AcquisitionError("unavailable", str(exc)))
    return Acquisition(source=source)


class SourceManager:
    """
    Owns the single active frame source.

    Switching closes the current source before the next one is requested,
    so two capture sessions are never open together.
    """

    def __init__(self, factory: Callable[[str], FrameSource]):
        self._factory = factory
        self._current: Optional[FrameSource] = None

    @property
    def current(self) -> Optional[FrameSource]:
        return self._current

    def switch(self, facing_mode: str) -> Acquisition:
        self.release()
        result = acquire(self._factory, facing_mode)
        if result.ok:
            self._current = result.source
        return result

    def release(self):
        if self._current is not None:
            self._current.close()
            self._current = None
