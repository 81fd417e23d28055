import json
from types import SimpleNamespace

import pytest

from models.scan_errors import AnalysisError
from services.openai.analysis_schema import FUNCTION_NAME
from services.openai.plant_analyzer import PlantAnalyzer


class FakeResponses:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def function_call_response(arguments, name=FUNCTION_NAME):
    return SimpleNamespace(
        output=[
            SimpleNamespace(type="reasoning"),
            SimpleNamespace(type="function_call", name=name, arguments=arguments),
        ],
        usage=SimpleNamespace(input_tokens=812, output_tokens=64),
    )


def make_analyzer(response=None, error=None):
    responses = FakeResponses(response=response, error=error)
    return PlantAnalyzer(SimpleNamespace(responses=responses), model="gpt-test"), responses


async def test_analyze_sends_image_url_and_parses_diagnosis():
    arguments = json.dumps(
        {"disease": "blight", "diagnosis": "Dark lesions with yellow halos.", "recommendations": "Remove infected leaves.", "confidence": 0.87}
    )
    analyzer, responses = make_analyzer(function_call_response(arguments))

    result = await analyzer.analyze("https://storage.test/plant-images/u1/1.jpg")

    assert result.disease == "blight"
    assert result.confidence == 0.87
    request = responses.requests[0]
    assert request["model"] == "gpt-test"
    assert request["tool_choice"] == {"type": "function", "name": FUNCTION_NAME}
    user_content = request["input"][1]["content"]
    assert {"type": "input_image", "image_url": "https://storage.test/plant-images/u1/1.jpg"} in user_content


async def test_null_fields_are_accepted():
    arguments = json.dumps({"disease": None, "diagnosis": None, "recommendations": None, "confidence": None})
    analyzer, _ = make_analyzer(function_call_response(arguments))

    result = await analyzer.analyze("https://storage.test/plant-images/u1/1.jpg")

    assert result.disease is None
    assert result.disease_label == "No disease detected"


async def test_missing_function_call_is_an_analysis_error():
    analyzer, _ = make_analyzer(SimpleNamespace(output=[SimpleNamespace(type="message")], usage=None))

    with pytest.raises(AnalysisError):
        await analyzer.analyze("https://storage.test/plant-images/u1/1.jpg")


@pytest.mark.parametrize("arguments", ["{not json", "[1, 2]"])
async def test_malformed_arguments_are_an_analysis_error(arguments):
    analyzer, _ = make_analyzer(function_call_response(arguments))

    with pytest.raises(AnalysisError):
        await analyzer.analyze("https://storage.test/plant-images/u1/1.jpg")


async def test_api_errors_propagate():
    analyzer, _ = make_analyzer(error=TimeoutError("request timed out"))

    with pytest.raises(TimeoutError):
        await analyzer.analyze("https://storage.test/plant-images/u1/1.jpg")


def test_client_is_required():
    with pytest.raises(ValueError):
        PlantAnalyzer(None)
