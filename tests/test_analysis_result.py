import pytest

from models.pipeline_result import FailureKind, ScanOutcome
from models.scan_errors import AnalysisError
from models.scan_models import AnalysisResult, CapturedImage, StoredImageRef


def test_full_payload():
    result = AnalysisResult.from_payload(
        {"disease": "Early blight", "diagnosis": "Concentric rings.", "recommendations": "Remove leaves.", "confidence": 0.9}
    )

    assert result == AnalysisResult("Early blight", "Concentric rings.", "Remove leaves.", 0.9)
    assert result.confidence_percent == 90
    assert result.to_dict()["disease_label"] == "Early blight"


def test_every_field_is_optional():
    result = AnalysisResult.from_payload({})

    assert result == AnalysisResult()
    assert result.disease_label == "No disease detected"
    assert result.confidence_percent is None
    assert result.to_dict()["disease_label"] == "No disease detected"


def test_blank_text_becomes_none():
    result = AnalysisResult.from_payload({"disease": "  ", "diagnosis": ""})

    assert result.disease is None
    assert result.diagnosis is None


def test_recommendation_list_is_joined():
    result = AnalysisResult.from_payload({"recommendations": ["Prune", " Spray copper "]})

    assert result.recommendations == "Prune\nSpray copper"


@pytest.mark.parametrize(
    "raw, expected",
    [
        (0.87, 0.87),
        (1, 1.0),
        (1.7, 1.0),
        (-0.2, 0.0),
        ("0.5", 0.5),
        ("high", None),
        (True, None),
        (float("nan"), None),
        ([0.5], None),
    ],
)
def test_confidence_is_clamped_or_dropped(raw, expected):
    assert AnalysisResult.from_payload({"confidence": raw}).confidence == expected


@pytest.mark.parametrize("payload", [None, "blight", ["blight"]])
def test_non_object_payload_is_malformed(payload):
    with pytest.raises(AnalysisError):
        AnalysisResult.from_payload(payload)


@pytest.mark.parametrize(
    "image, expected",
    [
        (CapturedImage(b"x", "image/jpeg", "leaf.jpeg"), "jpeg"),
        (CapturedImage(b"x", "image/png"), "png"),
        (CapturedImage(b"x", "image/webp", "IMG_0042"), "webp"),
        (CapturedImage(b"x", "application/octet-stream"), "jpg"),
    ],
)
def test_captured_image_extension(image, expected):
    assert image.extension == expected


def test_failed_outcome_payload():
    stored = StoredImageRef(path="u1/1.jpg", public_url="https://storage.test/plant-images/u1/1.jpg")
    outcome = ScanOutcome.failed(FailureKind.ANALYSIS_FAILED, "Failed to analyze image: timeout", stored=stored)

    payload = outcome.to_dict()

    assert payload["ok"] is False
    assert payload["error"] == "analysis_failed"
    assert payload["image_url"] == stored.public_url
    assert payload["record"] is None
