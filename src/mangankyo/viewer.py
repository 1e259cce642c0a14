"""
Live pygame viewer.

Shows the tiled kaleidoscope in a window the size of the viewport and maps
keys onto the configuration and export operations:

    s / space   export using the configured export mode
    d           export the full display
    p           export one repeat tile
    m           toggle the configured export mode
    f           switch between front and back camera
    up / +      larger pattern
    down / -    smaller pattern
    q / escape  quit
"""

import logging
from pathlib import Path
from typing import Callable, Optional

import pygame

from mangankyo.config import SCALE_MIN, SessionConfig
from mangankyo.errors import AcquisitionError, PreconditionError
from mangankyo.io.exporter import ExportRequest, Exporter
from mangankyo.render import RenderLoop
from mangankyo.scheduler import ClockScheduler
from mangankyo.sources import FrameSource, SourceManager, camera_factory

logger = logging.getLogger(__name__)

SCALE_STEP = 0.1
LOADING_COLOR = (5, 5, 15)


class LiveViewer:
    """Window, key bindings and scheduling around a RenderLoop."""

    def __init__(
        self,
        config: SessionConfig,
        factory: Optional[Callable[[str], FrameSource]] = None,
    ):
        self.config = config
        self.factory = factory or camera_factory()
        self.exports: list[Path] = []

    def run(self) -> int:
        """Open the window and render until quit. Returns an exit status."""
        pygame.init()
        try:
            screen = pygame.display.set_mode((self.config.width, self.config.height))
            pygame.display.set_caption("mangankyo - loading")
            screen.fill(LOADING_COLOR)
            pygame.display.flip()

            loop = RenderLoop(
                SourceManager(self.factory),
                self.config,
                on_ready=lambda: pygame.display.set_caption("mangankyo"),
                on_error=self._report_error,
            )
            with loop:
                if not loop.start():
                    return 1
                exporter = Exporter(loop)
                scheduler = ClockScheduler(self.config.fps)
                ticks = scheduler.run(lambda: self._step(screen, loop, exporter, scheduler))
                logger.info("Viewer closed after %d frames", ticks)
            return 0
        finally:
            pygame.quit()

    def _step(self, screen, loop: RenderLoop, exporter: Exporter, scheduler: ClockScheduler) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                scheduler.token.cancel()
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event.key, loop, exporter, scheduler)

        if scheduler.token.cancelled:
            return False
        if not loop.tick():
            return False

        pygame.surfarray.blit_array(screen, loop.surface.pixels.swapaxes(0, 1))
        pygame.display.flip()
        return True

    def _handle_key(self, key: int, loop: RenderLoop, exporter: Exporter, scheduler: ClockScheduler):
        # Key handling runs between ticks, so exports see a finished frame
        config = loop.next_config
        if key in (pygame.K_q, pygame.K_ESCAPE):
            scheduler.token.cancel()
        elif key in (pygame.K_s, pygame.K_SPACE):
            self._export(exporter, config.export_mode, config.output_dir)
        elif key == pygame.K_d:
            self._export(exporter, "display", config.output_dir)
        elif key == pygame.K_p:
            self._export(exporter, "pattern", config.output_dir)
        elif key == pygame.K_m:
            mode = "pattern" if config.export_mode == "display" else "display"
            loop.configure(export_mode=mode)
            print(f"Export mode: {mode}", flush=True)
        elif key == pygame.K_f:
            loop.configure(facing_mode=config.other_facing)
        elif key in (pygame.K_UP, pygame.K_EQUALS, pygame.K_PLUS, pygame.K_KP_PLUS):
            new = loop.configure(scale=round(config.scale + SCALE_STEP, 1))
            print(f"Scale: {new.scale:.1f}", flush=True)
        elif key in (pygame.K_DOWN, pygame.K_MINUS, pygame.K_KP_MINUS):
            new = loop.configure(scale=max(SCALE_MIN, round(config.scale - SCALE_STEP, 1)))
            print(f"Scale: {new.scale:.1f}", flush=True)

    def _export(self, exporter: Exporter, mode: str, directory: Path):
        try:
            path = exporter.export(ExportRequest(mode), directory)
        except PreconditionError as exc:
            print(f"Nothing to export yet: {exc}", flush=True)
            return
        self.exports.append(path)
        print(f"Saved {path}", flush=True)

    def _report_error(self, error: AcquisitionError):
        print(f"Error: {error.user_message()}", flush=True)
