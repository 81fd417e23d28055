"""Camera capture lifecycle: acquire, preview, capture a still, release.

The controller owns at most one device stream. Leaving the `capturing` state
by any edge (capture, stop, teardown) releases it exactly once.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from transitions import MachineError

from models.scan_errors import CaptureStateError
from models.scan_models import CapturedImage
from services.capture.capture_fsm import CaptureFSM

LOGGER = logging.getLogger(__name__)


class VideoStream(Protocol):
    @property
    def active(self) -> bool:
        ...

    def preview_jpeg(self) -> bytes:
        ...

    def snapshot(self) -> CapturedImage:
        ...

    def stop(self) -> None:
        ...


class Camera(Protocol):
    def open(self) -> VideoStream:
        ...


class CaptureController:
    """State machine driven camera controller.

    States: idle -> capturing -> captured -> idle.

    Usage:
        with CaptureController(OpenCVCamera()) as controller:
            controller.start()
            image = controller.capture()
    """

    def __init__(self, camera: Camera, config_path=None) -> None:
        self._camera = camera
        self._stream: Optional[VideoStream] = None
        self._image: Optional[CapturedImage] = None
        self._fsm = CaptureFSM(
            config_path=config_path,
            callbacks={
                "acquire_stream": self._acquire_stream,
                "release_stream": self._release_stream,
                "take_still": self._take_still,
                "discard_image": self._discard_image,
            },
        )

    # ------------------------------------------------------------------
    # STATE
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self._fsm.state

    @property
    def image(self) -> Optional[CapturedImage]:
        """The captured still, held until retake()."""
        return self._image

    @property
    def stream_active(self) -> bool:
        return self._stream is not None and self._stream.active

    # ------------------------------------------------------------------
    # FSM CALLBACKS
    # ------------------------------------------------------------------

    def _acquire_stream(self) -> None:
        if self._stream is not None:
            raise CaptureStateError("A camera stream is already active")
        # DeviceUnavailable propagates and aborts the transition; state stays idle
        self._stream = self._camera.open()
        LOGGER.info("Camera stream acquired")

    def _release_stream(self) -> None:
        stream = self._stream
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            # The handle is dropped even if release failed; a later stop() finishes the transition
            self._stream = None

    def _take_still(self) -> None:
        if self._stream is None:
            raise CaptureStateError("No active camera stream to capture from")
        # CaptureError propagates and keeps the controller in capturing
        self._image = self._stream.snapshot()
        LOGGER.info("Captured still image (%d bytes)", len(self._image.data))

    def _discard_image(self) -> None:
        self._image = None

    def _trigger(self, name: str) -> None:
        try:
            getattr(self._fsm, name)()
        except MachineError as exc:
            raise CaptureStateError(f"Cannot {name} while {self.state}") from exc

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Acquire the camera and begin the live preview.

        Raises:
            DeviceUnavailable: If the camera cannot be opened; the controller stays idle.
            CaptureStateError: If not idle (e.g. already capturing).
        """
        self._trigger("start")

    def preview_frame(self) -> bytes:
        """Return the current live frame as JPEG bytes.

        Holds the machine lock so a concurrent capture or stop cannot release
        the stream mid-read.
        """
        with self._fsm.lock:
            stream = self._stream
            if self.state != "capturing" or stream is None:
                raise CaptureStateError(f"No live preview while {self.state}")
            return stream.preview_jpeg()

    def capture(self) -> CapturedImage:
        """Take a still, release the camera and hold the image for submission."""
        self._trigger("capture")
        return self._image

    def stop(self) -> None:
        """Cancel the live preview and release the camera."""
        self._trigger("stop")
        LOGGER.info("Camera capture cancelled")

    def retake(self) -> None:
        """Discard the captured image and return to idle."""
        self._trigger("retake")

    def scan_another(self) -> None:
        """Discard the captured image and start the camera again."""
        self.retake()
        self.start()

    def close(self) -> None:
        """Teardown hook: release the camera if it is still capturing."""
        if self.state == "capturing":
            self.stop()

    def __enter__(self) -> "CaptureController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
