"""Shared test fixtures for ai-services."""

import json

import httpx
import pytest

from ai_services.config.models import AIServicesConfig
from ai_services.contracts import (
    GenerativeAIModel,
    GenerativeAIService,
    WithAPIClient,
    WithChatHistory,
    WithFunctionCalling,
    WithMultimodalInput,
)
from ai_services.exceptions import GenerativeAIError
from ai_services.generation import ChatHistoryMixin, TextGenerationMixin
from ai_services.types import AICapability, Candidate, Candidates, Content, ContentRole, ModelMetadata, TextPart


def sse_body(*events) -> bytes:
    """Encode JSON events as a server-sent events stream."""
    return "".join(f"data: {json.dumps(event)}\n\n" for event in events).encode()


async def aiter(items):
    for item in items:
        yield item


def model_text_candidates(*texts: str, **extra) -> Candidates:
    return Candidates(
        [
            Candidate(content=Content(role=ContentRole.MODEL, parts=[TextPart(text=text)]), **extra)
            for text in texts
        ]
    )


class FakeTextModel(TextGenerationMixin, ChatHistoryMixin, GenerativeAIModel):
    """Chat-capable model returning canned candidates and recording calls."""

    def __init__(self, responses=None, stream_chunks=None):
        self.responses = list(responses or [])
        self.stream_chunks = list(stream_chunks or [])
        self.calls = []

    def get_model_slug(self):
        return "fake-model"

    async def _send_generate_text_request(self, contents, request_options):
        self.calls.append((contents, request_options))
        return self.responses.pop(0)

    async def _send_stream_generate_text_request(self, contents, request_options):
        self.calls.append((contents, request_options))
        for chunk in self.stream_chunks:
            yield chunk


class TextOnlyModel(TextGenerationMixin, GenerativeAIModel):
    def get_model_slug(self):
        return "text-only"

    async def _send_generate_text_request(self, contents, request_options):
        return model_text_candidates("ok")

    async def _send_stream_generate_text_request(self, contents, request_options):
        yield model_text_candidates("ok")


class FullModel(TextOnlyModel, WithChatHistory, WithFunctionCalling, WithMultimodalInput):
    def start_chat(self, history=None):
        raise NotImplementedError


@pytest.fixture
def sample_config():
    return AIServicesConfig()


@pytest.fixture
def fake_model():
    return FakeTextModel(responses=[model_text_candidates("Hello there!")])


@pytest.fixture
def text_only_model():
    return TextOnlyModel()


@pytest.fixture
def full_model():
    return FullModel()


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def mock_http_client(recorded_requests):
    """Build an httpx.AsyncClient whose responses come from a handler.

    The handler receives the request; every request is also recorded.
    """

    def _factory(handler):
        def _record(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        return httpx.AsyncClient(transport=httpx.MockTransport(_record))

    return _factory


class FakeService(GenerativeAIService):
    """Service double with a canned model list; counts list_models calls."""

    def __init__(self, slug="fake", models=None, connected=True, capabilities=None):
        self.slug = slug
        self.models = models if models is not None else {
            "fake-model": ModelMetadata(
                slug="fake-model",
                name="Fake Model",
                capabilities=[AICapability.TEXT_GENERATION, AICapability.CHAT_HISTORY],
            )
        }
        self.connected = connected
        self.capabilities = capabilities or [AICapability.TEXT_GENERATION, AICapability.CHAT_HISTORY]
        self.list_calls = 0

    def get_service_slug(self):
        return self.slug

    def get_capabilities(self):
        return list(self.capabilities)

    async def list_models(self, request_options=None):
        self.list_calls += 1
        if not self.connected:
            raise GenerativeAIError(self.slug, "list_models", "unauthorized")
        return self.models

    def get_model(self, model_params=None, request_options=None):
        return FakeTextModel(responses=[model_text_candidates(f"from {self.slug}")])


class FakeServiceWithClient(FakeService, WithAPIClient):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_client = object()

    def get_api_client(self):
        return self.api_client
