from fastapi import APIRouter, Request

from controllers.camera_controller import (
	analyze_capture,
	camera_frame,
	camera_state,
	capture_photo,
	retake_photo,
	start_camera,
	stop_camera,
)

router = APIRouter(prefix="/api/camera", tags=["camera"])


@router.get("/state")
async def state_route(request: Request):
	return await camera_state(request)


@router.post("/start")
async def start_route(request: Request):
	"""Acquire the camera and start the live preview."""
	return await start_camera(request)


@router.get("/frame")
async def frame_route(request: Request):
	"""Return the current live frame as JPEG."""
	return await camera_frame(request)


@router.post("/capture")
async def capture_route(request: Request):
	return await capture_photo(request)


@router.post("/stop")
async def stop_route(request: Request):
	return await stop_camera(request)


@router.post("/retake")
async def retake_route(request: Request):
	return await retake_photo(request)


@router.post("/analyze")
async def analyze_route(request: Request):
	"""Send the captured still through the scan pipeline."""
	return await analyze_capture(request)
