"""Controllers for the server side camera capture flow."""

import asyncio
import base64
from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.responses import Response

from controllers.scan_controller import get_app_state, invalid_input, outcome_response, require_identity
from models.scan_errors import CaptureError, CaptureStateError, DeviceUnavailable, InvalidScanInput
from services.capture.capture_controller import CaptureController
from services.scan_pipeline import ScanPipeline


def _controller(request: Request) -> CaptureController:
    return get_app_state(request, "capture_controller")


def _state_payload(controller: CaptureController) -> Dict[str, Any]:
    image = controller.image
    return {
        "state": controller.state,
        "stream_active": controller.stream_active,
        "has_image": image is not None,
    }


async def _run(controller: CaptureController, operation: str):
    """Run a blocking controller operation in a worker thread, mapping errors to HTTP."""
    try:
        return await asyncio.to_thread(getattr(controller, operation))
    except DeviceUnavailable as exc:
        raise HTTPException(status_code=503, detail={"error": "device_unavailable", "message": str(exc)}) from exc
    except CaptureStateError as exc:
        raise HTTPException(status_code=409, detail={"error": "invalid_state", "message": str(exc)}) from exc
    except CaptureError as exc:
        raise HTTPException(status_code=500, detail={"error": "capture_failed", "message": str(exc)}) from exc


async def camera_state(request: Request) -> Dict[str, Any]:
    return _state_payload(_controller(request))


async def start_camera(request: Request) -> Dict[str, Any]:
    require_identity(request)
    controller = _controller(request)
    await _run(controller, "start")
    return _state_payload(controller)


async def camera_frame(request: Request) -> Response:
    """Return the current live frame as a JPEG."""
    frame = await _run(_controller(request), "preview_frame")
    return Response(content=frame, media_type="image/jpeg")


async def capture_photo(request: Request) -> Dict[str, Any]:
    """Capture a still, release the camera and return the still as a data URL."""
    require_identity(request)
    controller = _controller(request)
    image = await _run(controller, "capture")
    payload = _state_payload(controller)
    payload["image_url"] = f"data:{image.content_type};base64,{base64.b64encode(image.data).decode('utf-8')}"
    return payload


async def stop_camera(request: Request) -> Dict[str, Any]:
    controller = _controller(request)
    await _run(controller, "stop")
    return _state_payload(controller)


async def retake_photo(request: Request) -> Dict[str, Any]:
    controller = _controller(request)
    await _run(controller, "retake")
    return _state_payload(controller)


async def analyze_capture(request: Request) -> Dict[str, Any]:
    """Submit the captured still to the scan pipeline."""
    identity = require_identity(request)
    controller = _controller(request)
    pipeline: ScanPipeline = get_app_state(request, "scan_pipeline")
    if controller.state != "captured":
        raise HTTPException(
            status_code=409,
            detail={"error": "invalid_state", "message": f"No captured image while {controller.state}"},
        )
    try:
        outcome = await pipeline.analyze(controller.image, identity)
    except InvalidScanInput as exc:
        raise invalid_input(exc) from exc
    return outcome_response(outcome)
