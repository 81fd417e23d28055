from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from models.scan_models import AnalysisResult, StoredImageRef


@dataclass(frozen=True)
class ScanRecord:
    """In-memory representation of a row in the plant_scans table.

    Attributes:
        id: Primary key (uuid hex); None until the record store assigns one.
        user_id: Identity of the user who ran the scan.
        image_path: Object storage path of the scanned image.
        image_url: Public URL the analysis function was given.
        disease_detected: Disease label, if any.
        diagnosis: Diagnosis text, if any.
        recommendations: Treatment recommendations, if any.
        confidence_score: Confidence in [0, 1], if reported.
        created_at: Unix timestamp (seconds, float) when the row was inserted.
    """

    id: Optional[str]
    user_id: str
    image_path: str
    image_url: str
    disease_detected: Optional[str] = None
    diagnosis: Optional[str] = None
    recommendations: Optional[str] = None
    confidence_score: Optional[float] = None
    created_at: Optional[float] = None

    @classmethod
    def from_analysis(cls, user_id: str, stored: StoredImageRef, result: AnalysisResult) -> "ScanRecord":
        """Combine identity, stored image and analysis into an unsaved record."""
        return cls(
            id=None,
            user_id=user_id,
            image_path=stored.path,
            image_url=stored.public_url,
            disease_detected=result.disease,
            diagnosis=result.diagnosis,
            recommendations=result.recommendations,
            confidence_score=result.confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "image_path": self.image_path,
            "image_url": self.image_url,
            "disease_detected": self.disease_detected,
            "diagnosis": self.diagnosis,
            "recommendations": self.recommendations,
            "confidence_score": self.confidence_score,
            "created_at": self.created_at,
        }
