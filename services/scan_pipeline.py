"""Upload, analyze and persist a single plant scan.

`ScanPipeline.analyze` runs three remote stages in order, each gated on the
previous one:

1. upload the image bytes to object storage at `{identity}/{ms}.{ext}`
2. call the analysis function with the object's public URL
3. insert a ScanRecord combining identity, image address and diagnosis

A stage failure ends the call with a tagged `ScanOutcome`. Completed stages
are not rolled back: an image uploaded before a failed analysis or a failed
insert stays in storage, and nothing retries automatically.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Protocol

from models.pipeline_result import FailureKind, ScanOutcome
from models.scan_errors import InvalidScanInput
from models.scan_models import AnalysisResult, CapturedImage, StoredImageRef
from models.scan_record import ScanRecord

LOGGER = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    async def put(self, path: str, data: bytes) -> None:
        ...

    def resolve_public_url(self, path: str) -> str:
        ...


class AnalysisFunction(Protocol):
    async def analyze(self, image_url: str) -> AnalysisResult:
        ...


class RecordStore(Protocol):
    async def create_scan(self, record: ScanRecord) -> ScanRecord:
        ...


class ScanPipeline:
    """Drive one scan through storage, analysis and the record store.

    Args:
        storage: Object storage the image is uploaded to.
        analyzer: Remote analysis function taking a public image URL.
        records: Record store receiving one ScanRecord per successful run.
        clock: Returns the current time in seconds; injectable for tests.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        analyzer: AnalysisFunction,
        records: RecordStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._analyzer = analyzer
        self._records = records
        self._clock = clock
        self._last_stamp: Dict[str, int] = {}

    def object_path(self, identity: str, image: CapturedImage) -> str:
        """Return a fresh storage path for `image`.

        The millisecond timestamp is strictly increasing per identity within
        this pipeline, so two uploads in the same millisecond get distinct
        paths. There is no await between reading and updating the last stamp.
        """
        stamp = int(self._clock() * 1000)
        last = self._last_stamp.get(identity)
        if last is not None and stamp <= last:
            stamp = last + 1
        self._last_stamp[identity] = stamp
        return f"{identity}/{stamp}.{image.extension}"

    async def analyze(self, image: Optional[CapturedImage], identity: Optional[str]) -> ScanOutcome:
        """Upload, analyze and persist one image.

        Args:
            image: The image to scan; owned by the caller and never mutated.
            identity: Identity of the signed-in user.

        Returns:
            A ScanOutcome that is either successful or tagged with the failed stage.

        Raises:
            InvalidScanInput: If the image or identity is missing.
        """
        if image is None or not image.data:
            raise InvalidScanInput("An image is required for analysis.")
        if identity is None or not str(identity).strip():
            raise InvalidScanInput("A signed-in identity is required for analysis.")

        path = self.object_path(identity, image)
        try:
            await self._storage.put(path, image.data)
        except Exception as exc:
            LOGGER.exception("Upload of %s failed", path)
            return ScanOutcome.failed(FailureKind.UPLOAD_FAILED, f"Failed to upload image: {exc}")

        stored = StoredImageRef(path=path, public_url=self._storage.resolve_public_url(path))
        LOGGER.info("Uploaded scan image to %s", stored.path)

        try:
            result = await self._analyzer.analyze(stored.public_url)
        except Exception as exc:
            LOGGER.exception("Analysis of %s failed", stored.public_url)
            return ScanOutcome.failed(FailureKind.ANALYSIS_FAILED, f"Failed to analyze image: {exc}", stored=stored)
        LOGGER.info("Analysis of %s returned disease=%r confidence=%r", stored.path, result.disease, result.confidence)

        try:
            record = await self._records.create_scan(ScanRecord.from_analysis(identity, stored, result))
        except Exception as exc:
            LOGGER.exception("Saving scan record for %s failed", stored.path)
            return ScanOutcome.failed(
                FailureKind.PERSIST_FAILED,
                f"Analysis finished but the result could not be saved: {exc}",
                stored=stored,
                result=result,
            )
        LOGGER.info("Saved scan record %s for user %s", record.id, identity)

        return ScanOutcome(result=result, stored=stored, record=record)
