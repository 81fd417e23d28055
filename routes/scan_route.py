"""FastAPI routes for file scans and scan history."""

from typing import List, Optional

from fastapi import APIRouter, File, Query, Request, UploadFile
from pydantic import BaseModel

from controllers.scan_controller import analyze_upload, delete_history_entry, list_history, preview_upload

router = APIRouter(prefix="/api/scans", tags=["scans"])


class ScanOut(BaseModel):
    id: str
    user_id: str
    image_path: str
    image_url: str
    disease_detected: Optional[str] = None
    diagnosis: Optional[str] = None
    recommendations: Optional[str] = None
    confidence_score: Optional[float] = None
    created_at: float


class DeletedOut(BaseModel):
    id: str
    deleted: bool


@router.post("/preview", summary="Validate an image and return a local preview")
async def preview_route(image: UploadFile = File(...)):
    return await preview_upload(image)


@router.post("", summary="Upload and analyze a plant image")
async def analyze_route(request: Request, image: UploadFile = File(...)):
    """Upload the image, run the plant analysis and save the scan."""
    return await analyze_upload(request, image)


@router.get("", response_model=List[ScanOut], summary="List the caller's scans, newest first")
async def history_route(request: Request, limit: int = Query(100, ge=1, le=500), offset: int = Query(0, ge=0)):
    return await list_history(request, limit=limit, offset=offset)


@router.delete("/{scan_id}", response_model=DeletedOut, summary="Delete a scan and its image")
async def delete_route(request: Request, scan_id: str):
    return await delete_history_entry(request, scan_id)
