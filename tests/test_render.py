"""Tests for the render loop and schedulers."""

import numpy as np
import pytest

from mangankyo.config import SessionConfig
from mangankyo.core.surface import OutputSurface
from mangankyo.errors import RenderInvariantViolation
from mangankyo.render import RenderLoop
from mangankyo.scheduler import CancellationToken, ImmediateScheduler
from mangankyo.sources import ArrayFrameSource, SourceManager


@pytest.fixture
def config():
    return SessionConfig(width=320, height=240)


@pytest.fixture
def loop(registry, config):
    loop = RenderLoop(SourceManager(registry), config)
    yield loop
    loop.close()


def _manager_for(frames, loop=False):
    return SourceManager(lambda facing: ArrayFrameSource(frames, facing_mode=facing, loop=loop))


class TestTick:
    def test_renders_frame(self, loop):
        assert loop.start()
        assert loop.tick()

        assert loop.frames_rendered == 1
        assert loop.current_frame is not None
        assert loop.pattern.size == (720, 416)
        assert loop.surface.populated
        np.testing.assert_array_equal(loop.surface.pixels, loop.pattern.pixels[:240, :320])

    def test_not_running(self, loop):
        assert not loop.tick()
        assert loop.frames_rendered == 0

    def test_stop_seen_at_next_tick(self, loop):
        loop.start()
        loop.stop()
        assert not loop.tick()
        assert loop.frames_rendered == 0

    def test_ready_fires_once(self, registry, config):
        calls = []
        with RenderLoop(SourceManager(registry), config, on_ready=lambda: calls.append(1)) as loop:
            assert not loop.ready
            loop.start()
            for _ in range(3):
                loop.tick()
        assert calls == [1]
        assert loop.ready

    def test_stops_when_source_ends(self, gradient_frame, config):
        with RenderLoop(_manager_for([gradient_frame] * 3), config) as loop:
            assert loop.run(ImmediateScheduler()) == 3
            assert not loop.running
            assert not loop.tick()
        assert loop.frames_rendered == 3

    def test_missing_surface_is_invariant_violation(self, loop):
        loop.start()
        loop.surface.release()
        with pytest.raises(RenderInvariantViolation):
            loop.tick()
        assert not loop.running

    def test_no_surface(self, loop):
        loop.start()
        loop.surface = None
        with pytest.raises(RenderInvariantViolation):
            loop.tick()


class TestConfiguration:
    def test_scale_applied_at_next_tick(self, loop):
        loop.start()
        loop.tick()
        assert loop.pattern.width == pytest.approx(720)

        pending = loop.configure(scale=0.25)
        assert pending.scale == 0.25
        assert loop.config.scale == 0.5
        assert loop.next_config.scale == 0.25
        assert loop.pattern.width == pytest.approx(720)

        loop.tick()
        assert loop.config.scale == 0.25
        assert loop.pattern.width == pytest.approx(360)

    def test_changes_accumulate(self, loop):
        loop.configure(scale=1.0)
        loop.configure(export_mode="pattern")
        assert loop.next_config.scale == 1.0
        assert loop.next_config.export_mode == "pattern"

    def test_invalid_scale_clamped(self, loop):
        assert loop.configure(scale=-3).scale == 0.5

    @pytest.mark.parametrize("changes", [
        {"width": 999},
        {"height": 999},
        {"fps": 30},
        {"scale": 1.0, "width": 999, "height": 999},
    ])
    def test_viewport_fixed_for_session(self, loop, changes):
        loop.start()
        with pytest.raises(ValueError, match="during a session"):
            loop.configure(**changes)
        assert loop.next_config.scale == 0.5

        loop.tick()
        assert (loop.config.width, loop.config.height) == (320, 240)
        assert (loop.surface.width, loop.surface.height) == (320, 240)
        assert loop.surface.pixels.shape == (240, 320, 3)

    def test_surface_must_match_viewport(self, registry, config):
        with pytest.raises(ValueError, match="viewport"):
            RenderLoop(SourceManager(registry), config, surface=OutputSurface(100, 100))

    def test_matching_surface_accepted(self, registry, config):
        surface = OutputSurface(320, 240)
        with RenderLoop(SourceManager(registry), config, surface=surface) as loop:
            assert loop.surface is surface

    def test_facing_switch(self, loop, registry):
        loop.start()
        loop.tick()
        loop.configure(facing_mode="back")
        assert loop.tick()

        assert loop.sources.current.facing_mode == "back"
        assert registry.max_open == 1
        assert registry.events == [("open", "front"), ("close", "front"), ("open", "back")]

    def test_facing_switch_failure_stops_loop(self, loop, registry):
        errors = []
        loop.on_error = errors.append
        loop.start()
        loop.tick()

        registry.fail_for.add("back")
        loop.configure(facing_mode="back")
        assert not loop.tick()

        assert not loop.running
        assert loop.last_error.kind == "not_found"
        assert errors == [loop.last_error]
        assert registry.open_sources == []


class TestStartAndClose:
    def test_start_failure(self, registry, config):
        registry.fail_for.add("front")
        errors = []
        with RenderLoop(SourceManager(registry), config, on_error=errors.append) as loop:
            assert not loop.start()
            assert loop.run(ImmediateScheduler(max_ticks=5)) == 0
        assert loop.last_error.kind == "not_found"
        assert len(errors) == 2

    def test_close_releases(self, loop, registry):
        loop.start()
        loop.tick()
        loop.close()
        assert registry.open_sources == []
        assert loop.surface.released
        assert not loop.running


class TestSchedulers:
    def test_max_ticks(self, loop):
        assert loop.run(ImmediateScheduler(max_ticks=4)) == 4
        assert loop.frames_rendered == 4

    def test_cancelled_token(self, loop):
        token = CancellationToken()
        token.cancel()
        assert loop.run(ImmediateScheduler(token=token)) == 0

    def test_ticks_never_overlap(self):
        active = []
        seen = []

        def tick():
            active.append(1)
            seen.append(len(active))
            active.pop()
            return len(seen) < 10

        assert ImmediateScheduler().run(tick) == 9
        assert set(seen) == {1}
