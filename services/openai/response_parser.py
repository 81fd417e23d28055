"""Helpers to parse Responses API outputs."""

import json
from typing import Any, Dict, Optional

from models.scan_errors import AnalysisError


def parse_function_call(response: Any, *, tool_name: str) -> Dict[str, Any]:
    """Extract the decoded function call arguments for the specified tool name.

    Raises:
        AnalysisError: If no matching call is present or its arguments are not a JSON object.
    """
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) == "function_call" and getattr(item, "name", None) == tool_name:
            try:
                args = json.loads(getattr(item, "arguments", "{}") or "{}")
            except (TypeError, json.JSONDecodeError) as exc:
                raise AnalysisError(f"Unable to parse arguments of '{tool_name}'.") from exc
            if not isinstance(args, dict):
                raise AnalysisError(f"Arguments of '{tool_name}' are not an object.")
            return args
    raise AnalysisError(f"No function_call output for '{tool_name}' found in Responses API output.")


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "input_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "output_tokens", None) if usage else None,
    }
