"""
Tick schedulers.

A scheduler calls the tick callback, waits until the next tick is due and
repeats. The next tick is only scheduled after the previous callback
returned, so ticks never overlap. Cancellation is cooperative.
"""

import abc
from typing import Callable, Optional

import pygame


class CancellationToken:
    """Flag checked before every tick."""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class FrameScheduler(abc.ABC):
    """Drives a tick callback until it returns False or is cancelled."""

    def __init__(self, token: Optional[CancellationToken] = None):
        self.token = token or CancellationToken()

    @abc.abstractmethod
    def wait(self):
        """Block until the next tick is due."""

    def run(self, tick: Callable[[], bool]) -> int:
        """
        Run ticks.

        Args:
            tick: Callback returning True to keep going.

        Returns:
            Number of ticks that returned True.
        """
        count = 0
        while not self.token.cancelled:
            if not tick():
                break
            count += 1
            self.wait()
        return count


class ClockScheduler(FrameScheduler):
    """Paces ticks to a target frame rate with ``pygame.time.Clock``."""

    def __init__(self, fps: int = 60, token: Optional[CancellationToken] = None):
        super().__init__(token)
        self.fps = fps
        self._clock = pygame.time.Clock()

    def wait(self):
        self._clock.tick(self.fps)

    @property
    def measured_fps(self) -> float:
        return self._clock.get_fps()


class ImmediateScheduler(FrameScheduler):
    """Runs ticks back to back, optionally stopping after ``max_ticks``."""

    def __init__(self, max_ticks: Optional[int] = None, token: Optional[CancellationToken] = None):
        super().__init__(token)
        self.max_ticks = max_ticks
        self._ticks = 0

    def wait(self):
        self._ticks += 1
        if self.max_ticks is not None and self._ticks >= self.max_ticks:
            self.token.cancel()
