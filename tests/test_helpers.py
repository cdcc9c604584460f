"""Tests for content helpers, transformers and model selection."""

import base64
from unittest.mock import MagicMock, patch

import httpx
import pytest

from ai_services.types import (
    AICapability,
    Candidate,
    Content,
    GenerationConfig,
    InlineDataPart,
    ModelMetadata,
    TextPart,
)
from ai_services.util import (
    base64_encode_file,
    base64_encode_file_async,
    content_to_text,
    find_model_slug,
    get_candidate_contents,
    get_text_content_from_contents,
    get_text_from_contents,
    has_capabilities,
    text_and_data_to_content,
    text_and_data_to_content_async,
    text_to_content,
)
from ai_services.util.helpers import guess_mime_type
from ai_services.util.transformer import filter_empty, is_empty, transform_generation_config_params

IMAGE = {"inlineData": {"mimeType": "image/png", "data": "QUJD"}}


class TestContentToText:
    def test_joins_leading_text_parts(self):
        content = Content(parts=[{"text": "a"}, {"text": "b"}])
        assert content_to_text(content) == "a\n\nb"

    def test_skips_leading_non_text(self):
        content = Content(parts=[IMAGE, {"text": "caption"}])
        assert content_to_text(content) == "caption"

    def test_stops_at_first_non_text_after_text(self):
        content = Content(parts=[{"text": "a"}, IMAGE, {"text": "b"}])
        assert content_to_text(content) == "a"

    def test_no_text(self):
        assert content_to_text(Content(parts=[IMAGE])) == ""


class TestContentsHelpers:
    def test_get_text_from_contents_first_with_text(self):
        contents = [Content(parts=[IMAGE]), text_to_content("second"), text_to_content("third")]
        assert get_text_from_contents(contents) == "second"
        assert get_text_content_from_contents(contents) is contents[1]

    def test_no_text_content(self):
        assert get_text_from_contents([]) == ""
        assert get_text_content_from_contents([Content(parts=[IMAGE])]) is None

    def test_get_candidate_contents_skips_empty(self):
        candidates = [Candidate(content=text_to_content("a", "model")), Candidate()]
        contents = get_candidate_contents(candidates)
        assert len(contents) == 1
        assert contents[0].role == "model"


class TestFileHelpers:
    def test_text_and_data_to_content(self, tmp_path):
        image = tmp_path / "pixel.png"
        image.write_bytes(b"\x89PNG")
        content = text_and_data_to_content("What is this?", image)
        assert isinstance(content.parts[0], TextPart)
        assert isinstance(content.parts[1], InlineDataPart)
        assert content.parts[1].mime_type == "image/png"
        assert content.parts[1].base64_data == base64.b64encode(b"\x89PNG").decode()

    def test_base64_encode_file_as_data_url(self, tmp_path):
        f = tmp_path / "a.txt"
        f.write_bytes(b"hi")
        assert base64_encode_file(f, "text/plain") == "data:text/plain;base64,aGk="

    def test_base64_encode_url(self):
        response = MagicMock(content=b"hi")
        with patch("ai_services.util.helpers.httpx.get", return_value=response) as mock_get:
            assert base64_encode_file("https://example.com/a.txt") == "aGk="
        mock_get.assert_called_once()
        response.raise_for_status.assert_called_once()

    @pytest.mark.asyncio
    async def test_base64_encode_url_async(self):
        real_client = httpx.AsyncClient
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"hi"))
        with patch(
            "ai_services.util.helpers.httpx.AsyncClient",
            side_effect=lambda: real_client(transport=transport),
        ):
            assert await base64_encode_file_async("https://example.com/a.txt", "text/plain") == (
                "data:text/plain;base64,aGk="
            )

    @pytest.mark.asyncio
    async def test_text_and_data_to_content_async(self, tmp_path):
        image = tmp_path / "pixel.png"
        image.write_bytes(b"\x89PNG")
        content = await text_and_data_to_content_async("What is this?", image)
        assert content.parts[0].text == "What is this?"
        assert content.parts[1].mime_type == "image/png"
        assert content.parts[1].base64_data == base64.b64encode(b"\x89PNG").decode()

    def test_guess_mime_type_unknown(self):
        with pytest.raises(ValueError, match="MIME type"):
            guess_mime_type("file.unknownext")


class TestTransformer:
    @pytest.mark.parametrize("value", [None, "", [], {}, ()])
    def test_empty_values(self, value):
        assert is_empty(value)

    @pytest.mark.parametrize("value", [0, 0.0, False, "x", [0]])
    def test_non_empty_values(self, value):
        assert not is_empty(value)

    def test_filter_empty(self):
        assert filter_empty({"a": None, "b": 0, "c": [], "d": "x"}) == {"b": 0, "d": "x"}

    def test_transform_generation_config_skips_empty(self):
        config = GenerationConfig(temperature=0.0, stop_sequences=[])
        params = transform_generation_config_params(
            {"keep": True},
            config,
            {"temp": lambda c: c.temperature, "stop": lambda c: c.stop_sequences},
        )
        assert params == {"keep": True, "temp": 0.0}


class TestModelSelection:
    def test_find_model_slug(self):
        models = {
            "basic": ModelMetadata(slug="basic", capabilities=[AICapability.TEXT_GENERATION]),
            "vision": ModelMetadata(
                slug="vision",
                capabilities=[AICapability.TEXT_GENERATION, AICapability.MULTIMODAL_INPUT],
            ),
        }
        assert find_model_slug(models) == "basic"
        assert find_model_slug(models, ["multimodal_input"]) == "vision"
        assert find_model_slug(models, [AICapability.FUNCTION_CALLING]) is None

    def test_has_capabilities_mixes_enum_and_str(self):
        assert has_capabilities(["text_generation", AICapability.CHAT_HISTORY], [AICapability.TEXT_GENERATION])
        assert not has_capabilities([AICapability.TEXT_GENERATION], ["chat_history"])
