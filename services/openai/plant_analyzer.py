"""Description: Plant disease analysis using OpenAI's Responses API."""

import logging
import time
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from models.scan_models import AnalysisResult
from services.openai.analysis_prompts import build_system_prompt, build_user_prompt
from services.openai.analysis_schema import FUNCTION_DEFINITION, FUNCTION_NAME
from services.openai.response_parser import extract_usage, parse_function_call

LOGGER = logging.getLogger(__name__)
DEFAULT_MODEL = "gpt-5"


def build_inputs(system_prompt: str, user_prompt: str, image_url: str) -> List[Dict[str, Any]]:
    """Build the Responses API input array; the image is passed by URL only."""
    return [
        {
            "type": "message",
            "role": "system",
            "content": [{"type": "input_text", "text": system_prompt}],
        },
        {
            "type": "message",
            "role": "user",
            "content": [
                {"type": "input_text", "text": user_prompt},
                {"type": "input_image", "image_url": image_url},
            ],
        },
    ]


class PlantAnalyzer:
    """Remote analysis function: public image URL in, AnalysisResult out."""

    def __init__(self, client: AsyncOpenAI, model: Optional[str] = None) -> None:
        """Initialize the analyzer with an OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model or DEFAULT_MODEL
        self.system_prompt = build_system_prompt()

    async def analyze(self, image_url: str) -> AnalysisResult:
        """Diagnose the plant shown at `image_url`.

        Raises:
            AnalysisError: If the model output is missing or malformed.
            openai.OpenAIError: On transport or API failures.
        """
        start_time = time.time()
        inputs = build_inputs(self.system_prompt, build_user_prompt(), image_url)
        response = await self._create_response(inputs)
        payload = self._parse_response(response)
        usage = extract_usage(response)
        LOGGER.info(
            "Plant analysis finished in %.2fs (input_tokens=%s, output_tokens=%s)",
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return AnalysisResult.from_payload(payload)

    async def _create_response(self, inputs: List[Dict[str, Any]]) -> Any:
        """Send the request to the OpenAI Responses API."""
        try:
            return await self.client.responses.create(
                model=self.model,
                input=inputs,
                tools=[FUNCTION_DEFINITION],
                tool_choice={"type": "function", "name": FUNCTION_NAME},
            )
        except Exception as exc:
            LOGGER.error("Error during OpenAI Responses API call: %s", exc)
            raise

    def _parse_response(self, response: Any) -> Dict[str, Any]:
        """Parse the diagnosis arguments from the model output."""
        try:
            return parse_function_call(response, tool_name=FUNCTION_NAME)
        except Exception as exc:
            LOGGER.error("Error parsing OpenAI response: %s", exc)
            LOGGER.debug("Full response object: %r", response)
            raise
