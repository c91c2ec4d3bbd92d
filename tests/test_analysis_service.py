# =============================================================================
# tests/test_analysis_service.py - Image Analysis Aid Tests
# =============================================================================
# Tests for vision-model analysis: request validation, output parsing,
# the Azure inline-image fallback and provider error mapping.
#
# Run with: pytest tests/test_analysis_service.py -v
# =============================================================================

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from app.exceptions import ConfigurationError, ImageAnalysisError
from core.services.analysis_service import (
    AnalysisService,
    map_provider_error,
    parse_complete,
    parse_tags,
)

IMAGE_URL = "https://pub-test.r2.dev/picture/cover-42.webp"


def completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


def status_error(cls, status, message):
    response = httpx.Response(status, request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    return cls(message, response=response, body=None)


@pytest.fixture
def client():
    client = MagicMock()
    client.chat.completions.create.return_value = completion("Mountain, Mist, 雪山，mist; Dawn")
    return client


def make_service(client, azure=False, http=None):
    provider = MagicMock()
    provider.is_azure = azure
    provider.resolve.return_value = (client, "gpt-4o-mini")
    return AnalysisService(provider, http=http)


# =============================================================================
# Parsing Tests
# =============================================================================

class TestParsing:
    """Tests for parse_tags and parse_complete."""

    def test_parse_tags_dedupes_and_lowercases(self):
        assert parse_tags("Mountain, Mist, 雪山，mist; Dawn\n") == ["mountain", "mist", "雪山", "dawn"]

    def test_parse_complete(self):
        fields = parse_complete(
            "Title: Silent Peaks at Dawn\n"
            "Subtitle: First light over the Jade Dragon range\n"
            "Description: Cold blue shadows give way\nto a warm ridge line."
        )

        assert fields.title == "Silent Peaks at Dawn"
        assert fields.subtitle == "First light over the Jade Dragon range"
        assert fields.description == "Cold blue shadows give way to a warm ridge line."

    def test_parse_complete_missing_lines(self):
        fields = parse_complete("just some text")
        assert fields.title is None and fields.description is None


# =============================================================================
# Analyze Tests
# =============================================================================

class TestAnalyze:
    """Tests for AnalysisService.analyze."""

    def test_tags_analysis_via_chat(self, client):
        result = make_service(client).analyze(IMAGE_URL, "tags")

        assert result.success is True
        assert result.analysisType == "tags"
        assert result.tags == ["mountain", "mist", "雪山", "dawn"]

        content = client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert content[1] == {"type": "image_url", "image_url": {"url": IMAGE_URL}}

    def test_complete_analysis_fills_fields(self, client):
        client.chat.completions.create.return_value = completion("Title: A\nSubtitle: B\nDescription: C")

        result = make_service(client).analyze(IMAGE_URL, "complete")

        assert result.fields.title == "A"
        assert result.tags is None

    def test_custom_prompt_replaces_template(self, client):
        make_service(client).analyze(IMAGE_URL, "description", custom_prompt="Describe the sky only")

        content = client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert content[0]["text"] == "Describe the sky only"

    @pytest.mark.parametrize("url", [None, "", "  "])
    def test_missing_image_url(self, client, url):
        with pytest.raises(ImageAnalysisError) as exc_info:
            make_service(client).analyze(url, "tags")

        assert exc_info.value.status_code == 400
        assert exc_info.value.to_dict()["success"] is False
        client.chat.completions.create.assert_not_called()

    @pytest.mark.parametrize("url", [123, ["https://x/a.webp"], {"href": "https://x/a.webp"}])
    def test_non_string_image_url(self, client, url):
        with pytest.raises(ImageAnalysisError) as exc_info:
            make_service(client).analyze(url, "tags")

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "INVALID_FIELD"
        assert exc_info.value.to_dict()["analysisType"] == "tags"
        client.chat.completions.create.assert_not_called()

    def test_non_string_analysis_type_is_reported_as_text(self, client):
        with pytest.raises(ImageAnalysisError) as exc_info:
            make_service(client).analyze(IMAGE_URL, 7)

        assert exc_info.value.code == "INVALID_ANALYSIS_TYPE"
        assert exc_info.value.to_dict()["analysisType"] == "7"

    def test_non_string_custom_prompt(self, client):
        with pytest.raises(ImageAnalysisError) as exc_info:
            make_service(client).analyze(IMAGE_URL, "title", custom_prompt={"text": "sky"})

        assert exc_info.value.code == "INVALID_FIELD"
        client.chat.completions.create.assert_not_called()

    def test_invalid_analysis_type(self, client):
        with pytest.raises(ImageAnalysisError) as exc_info:
            make_service(client).analyze(IMAGE_URL, "poem")

        assert exc_info.value.code == "INVALID_ANALYSIS_TYPE"
        assert exc_info.value.to_dict()["analysisType"] == "poem"

    def test_missing_key(self, client):
        service = make_service(client)
        service.provider.resolve.side_effect = ConfigurationError(["OPENAI_API_KEY"], service="OpenAI")

        with pytest.raises(ImageAnalysisError) as exc_info:
            service.analyze(IMAGE_URL, "tags")

        assert exc_info.value.status_code == 500
        assert exc_info.value.code == "CONFIGURATION_ERROR"

    def test_responses_only_model_uses_responses_api(self, client):
        client.chat.completions.create.side_effect = status_error(
            openai.BadRequestError, 400, "This model is only supported in the Responses API"
        )
        client.responses.create.return_value = SimpleNamespace(output_text="A quiet lake")

        result = make_service(client).analyze(IMAGE_URL, "description")

        assert result.result == "A quiet lake"

    def test_azure_falls_back_to_inline_image(self, client):
        client.responses.create.side_effect = [
            openai.OpenAIError("Invalid image URL"),
            SimpleNamespace(output_text="A quiet lake"),
        ]
        http = httpx.Client(transport=httpx.MockTransport(
            lambda request: httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})
        ))

        result = make_service(client, azure=True, http=http).analyze(IMAGE_URL, "description")

        assert result.result == "A quiet lake"
        second_input = client.responses.create.call_args_list[1].kwargs["input"][0]["content"][1]
        assert second_input["image_url"].startswith("data:image/png;base64,")
        client.chat.completions.create.assert_not_called()

    def test_rate_limit_maps_to_429(self, client):
        client.chat.completions.create.side_effect = status_error(openai.RateLimitError, 429, "Rate limit reached")

        with pytest.raises(ImageAnalysisError) as exc_info:
            make_service(client).analyze(IMAGE_URL, "tags")

        body = exc_info.value.to_dict()
        assert exc_info.value.status_code == 429
        assert body["code"] == "QUOTA_EXCEEDED"
        assert body["result"] == ""


class TestMapProviderError:
    """Tests for map_provider_error."""

    @pytest.mark.parametrize("exc, status, code", [
        (status_error(openai.AuthenticationError, 401, "Incorrect API key provided"), 401, "INVALID_API_KEY"),
        (status_error(openai.BadRequestError, 400, "Invalid image"), 400, "BAD_REQUEST"),
        (openai.OpenAIError("You exceeded your current quota"), 429, "QUOTA_EXCEEDED"),
        (openai.OpenAIError("something odd"), 500, "UNKNOWN_ERROR"),
    ])
    def test_mapping(self, exc, status, code):
        error = map_provider_error(exc, "tags")
        assert (error.status_code, error.code) == (status, code)
