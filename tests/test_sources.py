"""Tests for frame sources and source switching."""

import numpy as np
import pytest
from PIL import Image

from mangankyo.errors import AcquisitionError
from mangankyo.sources import (
    ArrayFrameSource,
    CameraSource,
    SourceManager,
    StaticImageSource,
    acquire,
    camera_factory,
)


class TestArrayFrameSource:
    def test_stops_after_last_frame(self, noise_frame):
        source = ArrayFrameSource([noise_frame, noise_frame]).open()
        assert source.read() is not None
        assert source.read() is not None
        assert not source.is_active
        assert source.read() is None

    def test_loop(self, noise_frame):
        source = ArrayFrameSource(noise_frame, loop=True).open()
        for _ in range(5):
            assert source.read() is not None
        assert source.is_active

    def test_inactive_until_opened(self, noise_frame):
        source = ArrayFrameSource(noise_frame)
        assert not source.is_active
        assert source.read() is None

    def test_dimensions_from_last_frame(self, noise_frame):
        source = ArrayFrameSource(noise_frame).open()
        assert (source.width, source.height) == (0, 0)
        source.read()
        assert (source.width, source.height) == (320, 240)

    def test_context_manager_closes(self, noise_frame):
        with ArrayFrameSource(noise_frame, loop=True) as source:
            assert source.is_active
        assert not source.is_active

    def test_empty(self):
        with pytest.raises(ValueError):
            ArrayFrameSource([])


class TestStaticImageSource:
    def test_reads_image(self, tmp_path, noise_frame):
        path = tmp_path / "still.png"
        Image.fromarray(noise_frame).save(path)

        source = StaticImageSource(path).open()
        frame = source.read()
        np.testing.assert_array_equal(frame.pixels, noise_frame)
        assert source.read() is not None  # served every tick

    def test_converts_to_rgb(self, tmp_path):
        path = tmp_path / "gray.png"
        Image.new("L", (20, 10), 90).save(path)
        frame = StaticImageSource(path).open().read()
        assert frame.pixels.shape == (10, 20, 3)

    def test_missing(self, tmp_path):
        with pytest.raises(AcquisitionError) as info:
            StaticImageSource(tmp_path / "missing.png")
        assert info.value.kind == "not_found"

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")
        with pytest.raises(AcquisitionError) as info:
            StaticImageSource(path)
        assert info.value.kind == "unsupported"


class TestCameraSource:
    def test_factory_maps_devices(self):
        factory = camera_factory({"back": 3})
        front, back = factory("user"), factory("back")
        assert isinstance(front, CameraSource)
        assert (front.device, front.facing_mode) == (0, "front")
        assert (back.device, back.facing_mode) == (3, "back")
        assert not back.is_active

    def test_missing_device(self):
        pytest.importorskip("cv2")
        with pytest.raises(AcquisitionError) as info:
            CameraSource(device=99).open()
        assert info.value.kind == "not_found"

    def test_close_without_open(self):
        CameraSource().close()


class TestAcquire:
    def test_success(self, registry):
        result = acquire(registry, "front")
        assert result.ok
        assert result.unwrap().is_active

    def test_failure_is_reported(self, registry):
        registry.fail_for.add("back")
        result = acquire(registry, "back")
        assert not result.ok
        assert result.error.kind == "not_found"
        with pytest.raises(AcquisitionError):
            result.unwrap()

    @pytest.mark.parametrize("exc, kind", [
        (PermissionError("denied"), "permission_denied"),
        (OSError("busy"), "unavailable"),
    ])
    def test_os_errors_mapped(self, exc, kind):
        def factory(facing_mode):
            raise exc

        result = acquire(factory, "front")
        assert result.error.kind == kind


class TestSourceManager:
    def test_switch_closes_before_opening(self, registry):
        manager = SourceManager(registry)
        manager.switch("front")
        manager.switch("back")
        manager.switch("front")

        assert registry.max_open == 1
        assert registry.events == [
            ("open", "front"),
            ("close", "front"),
            ("open", "back"),
            ("close", "back"),
            ("open", "front"),
        ]
        assert manager.current.facing_mode == "front"

    def test_failed_switch_leaves_nothing_open(self, registry):
        manager = SourceManager(registry)
        manager.switch("front")
        registry.fail_for.add("back")

        result = manager.switch("back")
        assert not result.ok
        assert manager.current is None
        assert registry.open_sources == []

    def test_release(self, registry):
        manager = SourceManager(registry)
        manager.switch("front")
        manager.release()
        manager.release()
        assert manager.current is None
        assert registry.open_sources == []
