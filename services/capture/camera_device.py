"""OpenCV camera wrapper producing still JPEG captures.

`OpenCVCamera.open()` acquires the device and returns a `CameraStream`; the
stream is the only handle on the hardware and must be stopped to release it.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from models.scan_errors import CaptureError, DeviceUnavailable
from models.scan_models import CapturedImage

LOGGER = logging.getLogger(__name__)


class CameraStream:
    """Live video stream bound to an open `cv2.VideoCapture`."""

    def __init__(self, capture: "cv2.VideoCapture", jpeg_quality: int = 90) -> None:
        self._capture = capture
        self._jpeg_quality = jpeg_quality
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def read_frame(self) -> np.ndarray:
        """Return the latest BGR frame.

        Raises:
            CaptureError: If the stream is stopped or the device returned no frame.
        """
        if not self._active:
            raise CaptureError("Camera stream is not active")
        ok, frame = self._capture.read()
        if not ok or frame is None:
            raise CaptureError("Camera returned an empty frame")
        return frame

    def encode_frame(self, frame: np.ndarray) -> bytes:
        ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self._jpeg_quality])
        if not ok:
            raise CaptureError("Failed to encode frame as JPEG")
        return buffer.tobytes()

    def preview_jpeg(self) -> bytes:
        """Return the current frame as JPEG bytes for a live preview."""
        return self.encode_frame(self.read_frame())

    def snapshot(self) -> CapturedImage:
        """Take one still frame and encode it as a JPEG CapturedImage."""
        return CapturedImage(data=self.preview_jpeg(), content_type="image/jpeg", filename="capture.jpg")

    def stop(self) -> None:
        """Release the device. Calling it again is a no-op.

        Raises:
            CaptureError: If the driver fails to release the device.
        """
        if not self._active:
            return
        self._active = False
        try:
            self._capture.release()
        except cv2.error as exc:
            raise CaptureError(f"Failed to release camera: {exc}") from exc
        LOGGER.info("Camera stream released")


class OpenCVCamera:
    """Camera device opened through OpenCV.

    Args:
        device_index: OpenCV device index of the environment-facing camera.
        resolution: Optional (width, height) to request from the driver.
        jpeg_quality: JPEG quality used for previews and captures.
    """

    def __init__(self, device_index: int = 0, resolution: Optional[Tuple[int, int]] = None, jpeg_quality: int = 90):
        self.device_index = device_index
        self.resolution = resolution
        self.jpeg_quality = jpeg_quality

    def open(self) -> CameraStream:
        """Acquire the device and return a live stream.

        Raises:
            DeviceUnavailable: If the device is missing, busy or permission is denied.
        """
        LOGGER.info("Opening camera %s", self.device_index)
        try:
            capture = cv2.VideoCapture(self.device_index)
        except cv2.error as exc:
            raise DeviceUnavailable(f"Failed to access camera {self.device_index}: {exc}") from exc

        if not capture.isOpened():
            capture.release()
            raise DeviceUnavailable(f"Failed to access camera {self.device_index}")

        if self.resolution:
            width, height = self.resolution
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        return CameraStream(capture, jpeg_quality=self.jpeg_quality)
