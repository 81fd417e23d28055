"""Tagged outcome of a single ScanPipeline.analyze() call."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from models.scan_models import AnalysisResult, StoredImageRef
from models.scan_record import ScanRecord


class FailureKind(str, Enum):
    UPLOAD_FAILED = "upload_failed"
    ANALYSIS_FAILED = "analysis_failed"
    PERSIST_FAILED = "persist_failed"


@dataclass(frozen=True)
class PipelineFailure:
    """Which stage failed and a message suitable for showing to the user."""

    kind: FailureKind
    message: str


@dataclass(frozen=True)
class ScanOutcome:
    """Result of one pipeline run.

    On success `result`, `stored` and `record` are all set and `failure` is
    None. On failure `failure` is set and the other fields hold whatever the
    completed stages produced: an analysis failure still carries `stored`, a
    persistence failure carries `stored` and `result`.
    """

    result: Optional[AnalysisResult] = None
    stored: Optional[StoredImageRef] = None
    record: Optional[ScanRecord] = None
    failure: Optional[PipelineFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def failed(cls, kind: FailureKind, message: str, **partial: Any) -> "ScanOutcome":
        return cls(failure=PipelineFailure(kind=kind, message=message), **partial)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "ok": self.ok,
            "result": self.result.to_dict() if self.result else None,
            "image_url": self.stored.public_url if self.stored else None,
            "record": self.record.to_dict() if self.record else None,
        }
        if self.failure is not None:
            payload["error"] = self.failure.kind.value
            payload["message"] = self.failure.message
        return payload
