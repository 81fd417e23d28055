import io
from dataclasses import replace
from typing import Dict, List, Optional

import pytest
from PIL import Image

from models.scan_errors import CaptureError, DeviceUnavailable, StorageError
from models.scan_models import AnalysisResult, CapturedImage
from models.scan_record import ScanRecord


def make_image_bytes(fmt: str = "JPEG", size=(32, 24), color=(40, 160, 60)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_truncated_jpeg(size=(400, 300)) -> bytes:
    buffer = io.BytesIO()
    Image.effect_noise(size, 64).convert("RGB").save(buffer, format="JPEG")
    data = buffer.getvalue()
    return data[: len(data) // 2]


class FakeStorage:
    def __init__(self, fail: bool = False) -> None:
        self.objects: Dict[str, bytes] = {}
        self.fail = fail

    async def put(self, path: str, data: bytes) -> None:
        if self.fail:
            raise StorageError("bucket unavailable")
        if path in self.objects:
            raise StorageError(f"Object already exists: {path}")
        self.objects[path] = data

    def resolve_public_url(self, path: str) -> str:
        return f"https://storage.test/plant-images/{path}"


class FakeAnalyzer:
    def __init__(self, result: Optional[AnalysisResult] = None, error: Optional[Exception] = None) -> None:
        self.result = result or AnalysisResult(disease="blight", diagnosis="Brown lesions.", confidence=0.87)
        self.error = error
        self.calls: List[str] = []

    async def analyze(self, image_url: str) -> AnalysisResult:
        self.calls.append(image_url)
        if self.error is not None:
            raise self.error
        return self.result


class FakeRecordStore:
    def __init__(self, fail: bool = False) -> None:
        self.records: List[ScanRecord] = []
        self.fail = fail

    async def create_scan(self, record: ScanRecord) -> ScanRecord:
        if self.fail:
            raise RuntimeError("database is locked")
        stored = replace(record, id=f"scan-{len(self.records) + 1}", created_at=1700000000.0 + len(self.records))
        self.records.append(stored)
        return stored


class FakeStream:
    def __init__(self, frame: bytes = b"\xff\xd8frame\xff\xd9", fail_snapshot: bool = False, fail_stop: bool = False) -> None:
        self.frame = frame
        self.fail_snapshot = fail_snapshot
        self.fail_stop = fail_stop
        self.active = True
        self.stop_calls = 0

    def preview_jpeg(self) -> bytes:
        return self.frame

    def snapshot(self) -> CapturedImage:
        if self.fail_snapshot:
            raise CaptureError("Camera returned an empty frame")
        return CapturedImage(data=self.frame, content_type="image/jpeg", filename="capture.jpg")

    def stop(self) -> None:
        self.stop_calls += 1
        self.active = False
        if self.fail_stop:
            raise CaptureError("Failed to release camera")


class FakeCamera:
    def __init__(self, available: bool = True, fail_snapshot: bool = False, fail_stop: bool = False) -> None:
        self.available = available
        self.fail_snapshot = fail_snapshot
        self.fail_stop = fail_stop
        self.streams: List[FakeStream] = []

    def open(self) -> FakeStream:
        if not self.available:
            raise DeviceUnavailable("Permission denied")
        stream = FakeStream(fail_snapshot=self.fail_snapshot, fail_stop=self.fail_stop)
        self.streams.append(stream)
        return stream

    @property
    def active_streams(self) -> int:
        return sum(1 for s in self.streams if s.active)


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
def leaf_image(jpeg_bytes) -> CapturedImage:
    return CapturedImage(data=jpeg_bytes, content_type="image/jpeg", filename="leaf.jpg")
