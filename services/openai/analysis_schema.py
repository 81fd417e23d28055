"""Schema definitions for the plant diagnosis tool."""

from typing import Any, Dict

FUNCTION_NAME = "report_plant_diagnosis"

FUNCTION_DEFINITION: Dict[str, Any] = {
    "type": "function",
    "name": FUNCTION_NAME,
    "description": (
        "Return the detected disease, a diagnosis, treatment recommendations, and a confidence score."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "disease": {
                "type": ["string", "null"],
                "description": "Name of the detected disease or pest, or null if the plant looks healthy.",
            },
            "diagnosis": {
                "type": ["string", "null"],
                "description": "Short explanation of the visible symptoms and what they indicate.",
            },
            "recommendations": {
                "type": ["string", "null"],
                "description": "Practical treatment and prevention steps for the grower.",
            },
            "confidence": {
                "type": ["number", "null"],
                "description": "Confidence in the diagnosis between 0 and 1.",
            },
        },
        "required": ["disease", "diagnosis", "recommendations", "confidence"],
        "additionalProperties": False,
    },
    "strict": True,
}
