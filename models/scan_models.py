"""Domain models for captured images, stored images and analysis results."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

from models.scan_errors import AnalysisError

_EXTENSIONS_BY_TYPE = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/gif": "gif",
    "image/heic": "heic",
}


@dataclass(frozen=True)
class CapturedImage:
    """Encoded image bytes produced by the camera or a file selection.

    Attributes:
        data: Raw encoded image bytes.
        content_type: MIME type of `data` (e.g. image/jpeg).
        filename: Original filename for file selections, if known.
    """

    data: bytes
    content_type: str = "image/jpeg"
    filename: Optional[str] = None

    @property
    def extension(self) -> str:
        """Return the storage extension, preferring the original filename's.

        Only alphanumeric filename suffixes are used; anything else falls back
        to the extension of the content type.
        """
        if self.filename:
            suffix = PurePosixPath(self.filename).suffix.lstrip(".").lower()
            if suffix.isascii() and suffix.isalnum():
                return suffix
        content_type = (self.content_type or "").lower().split(";", 1)[0].strip()
        return _EXTENSIONS_BY_TYPE.get(content_type, "jpg")

    def __repr__(self) -> str:
        return f"CapturedImage(content_type={self.content_type!r}, filename={self.filename!r}, size={len(self.data)})"


@dataclass(frozen=True)
class StoredImageRef:
    """Address of an uploaded image inside object storage."""

    path: str
    public_url: str


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = "\n".join(str(item).strip() for item in value if str(item).strip())
    text = str(value).strip()
    return text or None


def _clean_confidence(value: Any) -> Optional[float]:
    # bool is an int subclass; a true/false confidence is meaningless
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    score = float(value)
    if not math.isfinite(score):
        return None
    return min(1.0, max(0.0, score))


@dataclass(frozen=True)
class AnalysisResult:
    """Structured diagnosis returned by the analysis function.

    Every field is optional; the remote output is untrusted.
    """

    disease: Optional[str] = None
    diagnosis: Optional[str] = None
    recommendations: Optional[str] = None
    confidence: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "AnalysisResult":
        """Build a result from the raw analysis payload.

        Text fields are stripped and blank values become None. Confidence is
        parsed as a number and clamped into [0, 1]; anything unparsable
        becomes None.

        Raises:
            AnalysisError: If the payload is not a mapping.
        """
        if not isinstance(payload, dict):
            raise AnalysisError(f"Malformed analysis payload: expected an object, got {type(payload).__name__}")
        return cls(
            disease=_clean_text(payload.get("disease")),
            diagnosis=_clean_text(payload.get("diagnosis")),
            recommendations=_clean_text(payload.get("recommendations")),
            confidence=_clean_confidence(payload.get("confidence")),
        )

    @property
    def disease_label(self) -> str:
        return self.disease or "No disease detected"

    @property
    def confidence_percent(self) -> Optional[int]:
        if self.confidence is None:
            return None
        return round(self.confidence * 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "disease": self.disease,
            "disease_label": self.disease_label,
            "diagnosis": self.diagnosis,
            "recommendations": self.recommendations,
            "confidence": self.confidence,
            "confidence_percent": self.confidence_percent,
        }
