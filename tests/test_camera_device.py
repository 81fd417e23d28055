import numpy as np
import pytest

from models.scan_errors import CaptureError, DeviceUnavailable
from services.capture import camera_device
from services.capture.camera_device import OpenCVCamera


class FakeVideoCapture:
    instances = []

    def __init__(self, index, opened=True, frame=None, release_error=False):
        self.index = index
        self.opened = opened
        self.frame = frame
        self.release_error = release_error
        self.released = 0
        self.props = {}
        FakeVideoCapture.instances.append(self)

    def isOpened(self):
        return self.opened

    def read(self):
        return (self.frame is not None, self.frame)

    def set(self, prop, value):
        self.props[prop] = value

    def release(self):
        self.released += 1
        if self.release_error:
            raise camera_device.cv2.error("release failed")


@pytest.fixture(autouse=True)
def reset_instances():
    FakeVideoCapture.instances = []


def patch_capture(monkeypatch, **kwargs):
    monkeypatch.setattr(camera_device.cv2, "VideoCapture", lambda index: FakeVideoCapture(index, **kwargs))


def test_unopened_device_is_unavailable_and_released(monkeypatch):
    patch_capture(monkeypatch, opened=False)

    with pytest.raises(DeviceUnavailable):
        OpenCVCamera(device_index=1).open()

    assert FakeVideoCapture.instances[0].index == 1
    assert FakeVideoCapture.instances[0].released == 1


def test_snapshot_encodes_jpeg(monkeypatch):
    frame = np.full((24, 32, 3), 120, dtype=np.uint8)
    patch_capture(monkeypatch, frame=frame)

    stream = OpenCVCamera(resolution=(640, 480)).open()
    image = stream.snapshot()

    assert image.content_type == "image/jpeg"
    assert image.data[:2] == b"\xff\xd8"
    assert stream.active
    assert len(FakeVideoCapture.instances[0].props) == 2


def test_empty_frame_raises_capture_error(monkeypatch):
    patch_capture(monkeypatch, frame=None)

    stream = OpenCVCamera().open()

    with pytest.raises(CaptureError):
        stream.snapshot()


def test_stop_is_idempotent(monkeypatch):
    patch_capture(monkeypatch, frame=np.zeros((4, 4, 3), dtype=np.uint8))
    stream = OpenCVCamera().open()

    stream.stop()
    stream.stop()

    assert not stream.active
    assert FakeVideoCapture.instances[0].released == 1
    with pytest.raises(CaptureError):
        stream.preview_jpeg()


def test_driver_release_error_becomes_capture_error(monkeypatch):
    patch_capture(monkeypatch, frame=np.zeros((4, 4, 3), dtype=np.uint8), release_error=True)
    stream = OpenCVCamera().open()

    with pytest.raises(CaptureError):
        stream.stop()

    assert not stream.active
    stream.stop()
    assert FakeVideoCapture.instances[0].released == 1
