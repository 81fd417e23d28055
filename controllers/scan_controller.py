"""Controllers for file scans, previews and scan history."""

from typing import Any, Dict, List

from fastapi import HTTPException, Request, UploadFile

from models.pipeline_result import FailureKind, ScanOutcome
from models.scan_errors import InvalidScanInput
from services.capture.file_source import FileImageSource
from services.scan_history import ScanHistoryService, ScanNotFound
from services.scan_pipeline import ScanPipeline
from utils.media_validation import UnsupportedImageType

IDENTITY_HEADER = "X-User-Id"

_FAILURE_STATUS = {
    FailureKind.UPLOAD_FAILED: 502,
    FailureKind.ANALYSIS_FAILED: 502,
    FailureKind.PERSIST_FAILED: 500,
}


def require_identity(request: Request) -> str:
    """Return the caller identity supplied by the auth layer, or reject with 401."""
    identity = (request.headers.get(IDENTITY_HEADER) or "").strip()
    if not identity:
        raise HTTPException(status_code=401, detail="Sign in required.")
    return identity


def get_app_state(request: Request, name: str):
    """Retrieve a shared service from the app state."""
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=500, detail=f"{name} not initialized.")
    return value


def invalid_input(exc: InvalidScanInput) -> HTTPException:
    status = 415 if isinstance(exc, UnsupportedImageType) else 400
    return HTTPException(status_code=status, detail={"error": "invalid_input", "message": str(exc)})


def outcome_response(outcome: ScanOutcome) -> Dict[str, Any]:
    """Return the success payload, or raise the HTTP error for the failed stage."""
    if outcome.failure is not None:
        raise HTTPException(
            status_code=_FAILURE_STATUS[outcome.failure.kind],
            detail={"error": outcome.failure.kind.value, "message": outcome.failure.message},
        )
    return outcome.to_dict()


async def _select_upload(file: UploadFile) -> FileImageSource:
    try:
        data = await file.read()
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise HTTPException(status_code=400, detail="Unable to read uploaded image.") from exc

    source = FileImageSource()
    try:
        source.select(data, filename=file.filename, content_type=file.content_type)
    except InvalidScanInput as exc:
        raise invalid_input(exc) from exc
    return source


async def preview_upload(file: UploadFile) -> Dict[str, Any]:
    """Validate an uploaded file and return its local preview without storing it."""
    source = await _select_upload(file)
    return {
        "filename": source.image.filename,
        "content_type": source.image.content_type,
        "preview_url": source.preview.data_url,
    }


async def analyze_upload(request: Request, file: UploadFile) -> Dict[str, Any]:
    """Run the scan pipeline on an uploaded file.

    Returns:
        The analysis result, public image URL and persisted record.

    Raises:
        HTTPException: 400/415 for invalid files, 401 without identity,
            502/500 tagged with the failed pipeline stage.
    """
    identity = require_identity(request)
    pipeline: ScanPipeline = get_app_state(request, "scan_pipeline")
    source = await _select_upload(file)
    try:
        outcome = await pipeline.analyze(source.image, identity)
    except InvalidScanInput as exc:
        raise invalid_input(exc) from exc
    finally:
        source.discard()
    return outcome_response(outcome)


async def list_history(request: Request, limit: int = 100, offset: int = 0) -> List[Dict[str, Any]]:
    """Return the caller's scans, newest first."""
    identity = require_identity(request)
    history: ScanHistoryService = get_app_state(request, "scan_history")
    records = await history.list_scans(identity, limit=limit, offset=offset)
    return [record.to_dict() for record in records]


async def delete_history_entry(request: Request, scan_id: str) -> Dict[str, Any]:
    """Delete one of the caller's scans along with its image."""
    identity = require_identity(request)
    history: ScanHistoryService = get_app_state(request, "scan_history")
    try:
        record = await history.delete_scan(identity, scan_id)
    except ScanNotFound as exc:
        raise HTTPException(status_code=404, detail="Scan not found") from exc
    return {"id": record.id, "deleted": True}
