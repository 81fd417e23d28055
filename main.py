import inspect
import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from dal.object_storage import LocalObjectStorage
from dal.scan_dal import ScanDAL
from routes.camera_route import router as camera_router
from routes.scan_route import router as scan_router
from services.capture.camera_device import OpenCVCamera
from services.capture.capture_controller import CaptureController
from services.openai.plant_analyzer import PlantAnalyzer
from services.scan_history import ScanHistoryService
from services.scan_pipeline import ScanPipeline
from utils.config import settings
from utils.database_init import AsyncDatabaseInitializer

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite scan database (at DATABASE_DIR/app.db)
      - the OpenAI async client and the plant analyzer
      - the scan pipeline, scan history and camera capture controller
    and attach them to `app.state`.

    On shutdown the camera is released if it is still capturing.
    """
    db_initializer = AsyncDatabaseInitializer()
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    if not os.getenv("OPENAI_API_KEY"):
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    try:
        openai_client = AsyncOpenAI(timeout=settings.OPENAI_TIMEOUT_SECONDS)
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc
    app.state.openai_client = openai_client

    records = ScanDAL(db_initializer)
    storage: LocalObjectStorage = app.state.storage
    app.state.scan_pipeline = ScanPipeline(
        storage=storage,
        analyzer=PlantAnalyzer(openai_client, model=settings.OPENAI_MODEL),
        records=records,
    )
    app.state.scan_history = ScanHistoryService(records, storage)

    capture_controller = CaptureController(
        OpenCVCamera(device_index=settings.CAMERA_INDEX, jpeg_quality=settings.CAMERA_JPEG_QUALITY)
    )
    app.state.capture_controller = capture_controller
    logger.info("Scan service ready (storage=%s)", storage.bucket_dir)

    try:
        yield
    finally:
        capture_controller.close()

        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    if inspect.iscoroutinefunction(aclose):
                        await aclose()
                    else:
                        result = aclose()
                        if inspect.isawaitable(result):
                            await result
                except Exception:
                    logger.warning("Error while closing the OpenAI client", exc_info=True)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    storage = LocalObjectStorage(settings.STORAGE_DIR, settings.PUBLIC_BASE_URL, bucket=settings.STORAGE_BUCKET)
    storage.bucket_dir.mkdir(parents=True, exist_ok=True)
    app.state.storage = storage

    # Public URLs of uploaded images resolve through this mount.
    app.mount(f"/{storage.bucket}", StaticFiles(directory=storage.bucket_dir), name=storage.bucket)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting which shared services are initialized.
        """
        controller = getattr(request.app.state, "capture_controller", None)
        return {
            "ok": True,
            "db_initialized": hasattr(request.app.state, "db_initializer"),
            "openai_available": getattr(request.app.state, "openai_client", None) is not None,
            "camera_state": controller.state if controller is not None else None,
        }

    app.include_router(scan_router)
    app.include_router(camera_router)

    return app


app = create_app()
