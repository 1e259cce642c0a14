"""
Render loop.

Each tick pulls the latest frame, samples the triangle, composes the repeat
tile and fills the output surface with it. Configuration changes are queued
and applied together at the top of the next tick.
"""

import dataclasses
import logging
from typing import Callable, Optional

from mangankyo.config import SessionConfig
from mangankyo.core.buffers import Frame, PatternTile
from mangankyo.core.composer import compose_pattern
from mangankyo.core.surface import OutputSurface
from mangankyo.core.triangle import extract_triangle
from mangankyo.errors import AcquisitionError, RenderInvariantViolation
from mangankyo.scheduler import FrameScheduler
from mangankyo.sources import SourceManager

logger = logging.getLogger(__name__)

# Fixed when the output surface and scheduler are created
SESSION_FIXED_FIELDS = frozenset({"width", "height", "fps"})


class RenderLoop:
    """
    Turns frames from the active source into a tiled kaleidoscope surface.

    Driven by a FrameScheduler through ``run``, or tick by tick. Once the
    source stops the loop stays stopped until ``start`` is called again.
    """

    def __init__(
        self,
        sources: SourceManager,
        config: Optional[SessionConfig] = None,
        surface: Optional[OutputSurface] = None,
        on_ready: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[AcquisitionError], None]] = None,
    ):
        self.sources = sources
        self.config = config or SessionConfig()
        if surface is None:
            surface = OutputSurface.create(self.config.width, self.config.height)
        elif (surface.width, surface.height) != (self.config.width, self.config.height):
            raise ValueError(
                f"Surface is {surface.width}x{surface.height} but the session viewport "
                f"is {self.config.width}x{self.config.height}"
            )
        self.surface = surface
        self.on_ready = on_ready
        self.on_error = on_error

        # State
        self.running = False
        self.ready = False
        self.current_frame: Optional[Frame] = None
        self.pattern: Optional[PatternTile] = None
        self.frames_rendered = 0
        self.last_error: Optional[AcquisitionError] = None
        self._pending: Optional[SessionConfig] = None

    @property
    def next_config(self) -> SessionConfig:
        """Configuration that will be in effect from the next tick."""
        return self._pending or self.config

    def configure(self, **changes) -> SessionConfig:
        """
        Queue configuration changes for the next tick.

        Returns:
            The configuration that will be in effect from the next tick.

        Raises:
            ValueError: a viewport or frame-rate field was given; those are
                fixed for the session.
        """
        fixed = sorted(SESSION_FIXED_FIELDS.intersection(changes))
        if fixed:
            raise ValueError(f"Cannot change {', '.join(fixed)} during a session")
        self._pending = self.next_config.replace(**changes)
        return self._pending

    def start(self) -> bool:
        """
        Acquire a source if needed and mark the loop as running.

        Returns:
            False when no source could be acquired; the error is kept in
            ``last_error`` and passed to ``on_error``.
        """
        source = self.sources.current
        if source is None or not source.is_active:
            if not self._acquire(self.config.facing_mode):
                return False
        self.running = True
        return True

    def stop(self):
        """Request a stop; seen at the top of the next tick."""
        self.running = False

    def run(self, scheduler: FrameScheduler) -> int:
        """Start and drive ticks until stopped. Returns the ticks rendered."""
        if not self.running and not self.start():
            return 0
        return scheduler.run(self.tick)

    def tick(self) -> bool:
        """
        Render one frame.

        Returns:
            True if a frame was rendered and the loop should continue.

        Raises:
            RenderInvariantViolation: the output surface is missing.
        """
        if not self.running:
            return False

        if not self._apply_pending():
            self.running = False
            return False

        if self.surface is None or self.surface.released:
            self.running = False
            raise RenderInvariantViolation("No output surface at tick time")

        source = self.sources.current
        if source is None or not source.is_active:
            logger.info("Frame source inactive, stopping render loop")
            self.running = False
            return False

        frame = source.read()
        if frame is None:
            logger.info("Frame source stopped, stopping render loop")
            self.running = False
            return False

        triangle = extract_triangle(frame, self.config.scale)
        pattern = compose_pattern(triangle)
        self.surface.fill_pattern(pattern)

        self.current_frame = frame
        self.pattern = pattern
        self.frames_rendered += 1

        if not self.ready:
            self.ready = True
            logger.info(
                "First frame rendered (%dx%d source, tile %dx%d)",
                frame.width, frame.height, *pattern.size,
            )
            if self.on_ready is not None:
                self.on_ready()

        return True

    def close(self):
        """End the session: release the source and the surface."""
        self.running = False
        self.sources.release()
        if self.surface is not None:
            self.surface.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _apply_pending(self) -> bool:
        if self._pending is None:
            return True
        previous, self.config = self.config, self._pending
        self._pending = None

        changed = [
            f.name for f in dataclasses.fields(SessionConfig)
            if getattr(previous, f.name) != getattr(self.config, f.name)
        ]
        if changed:
            logger.debug("Applying configuration changes: %s", ", ".join(changed))

        if self.config.facing_mode != previous.facing_mode:
            return self._acquire(self.config.facing_mode)
        return True

    def _acquire(self, facing_mode: str) -> bool:
        result = self.sources.switch(facing_mode)
        if not result.ok:
            self.last_error = result.error
            if self.on_error is not None:
                self.on_error(result.error)
            return False
        self.last_error = None
        return True
