"""Tests for the client datastore and the remote services it hands out."""

import json

import httpx
import pytest

from ai_services.config.models import StoreConfig
from ai_services.contracts import WithChatHistory, WithFunctionCalling, WithMultimodalInput
from ai_services.exceptions import GenerativeAIError
from ai_services.store import AIStore, RemoteGenerativeAIModel, RemoteGenerativeAIService

from conftest import sse_body

SERVICES = [
    {
        "slug": "google",
        "name": "Google (Gemini)",
        "isAvailable": True,
        "capabilities": ["chat_history", "function_calling", "multimodal_input", "text_generation"],
        "availableModels": {
            "gemini-2.0-flash": {
                "slug": "gemini-2.0-flash",
                "name": "Gemini 2.0 Flash",
                "capabilities": ["text_generation"],
            }
        },
    },
    {
        "slug": "openai",
        "name": "OpenAI (GPT)",
        "is_available": False,
        "capabilities": ["chat_history", "text_generation"],
    },
]

CANDIDATES = [{"content": {"role": "model", "parts": [{"text": "Hi from the server"}]}, "finishReason": "STOP"}]


def _server(settings=None):
    saved = dict(settings or {"model": "gemini-2.0-flash", "temperature": 0.5})

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/ai-services/v1/")
        if path == "services":
            return httpx.Response(200, json=SERVICES)
        if path == "settings" and request.method == "GET":
            return httpx.Response(200, json=saved)
        if path == "settings" and request.method == "POST":
            return httpx.Response(200, json=json.loads(request.content))
        if path == "services/google:generate-text":
            return httpx.Response(200, json={"candidates": CANDIDATES})
        if path == "services/google:stream-generate-text":
            chunks = [
                [{"content": {"role": "model", "parts": [{"text": "Hi "}]}}],
                [{"content": {"role": "model", "parts": [{"text": "there"}]}, "finishReason": "STOP"}],
            ]
            return httpx.Response(200, content=sse_body(*chunks))
        return httpx.Response(404, json={"error": {"message": f"No route {path}"}})

    return handler


@pytest.fixture
def store(mock_http_client):
    return AIStore("https://example.com/", http_client=mock_http_client(_server()))


# ========================================================================
# Services store
# ========================================================================


class TestServicesStore:
    def test_selectors_before_load(self, store):
        assert not store.services.is_loaded
        assert store.services.get_services() is None
        assert store.services.is_service_registered("google") is None
        assert store.services.is_service_available("google") is None
        assert store.services.has_available_services() is None
        assert store.services.get_available_service() is None

    @pytest.mark.asyncio
    async def test_fetch_services(self, store, recorded_requests):
        services = await store.services.fetch_services()

        assert str(recorded_requests[0].url) == "https://example.com/ai-services/v1/services"
        assert list(services) == ["google", "openai"]
        assert services["google"].is_available
        assert not services["openai"].is_available
        assert store.services.is_loaded

    @pytest.mark.asyncio
    async def test_fetch_only_once_unless_forced(self, store, recorded_requests):
        await store.services.fetch_services()
        await store.services.fetch_services()
        assert len(recorded_requests) == 1
        await store.services.fetch_services(force=True)
        assert len(recorded_requests) == 2

    @pytest.mark.asyncio
    async def test_invalid_payload(self, mock_http_client):
        store = AIStore(
            "https://example.com",
            http_client=mock_http_client(lambda r: httpx.Response(200, json={"services": []})),
        )
        with pytest.raises(GenerativeAIError, match="not a list"):
            await store.services.fetch_services()

    @pytest.mark.asyncio
    async def test_store_from_config(self, mock_http_client, recorded_requests):
        config = StoreConfig(base_url="https://wp.example.com/", timeout=5)
        store = AIStore.from_config(config, http_client=mock_http_client(_server()))
        assert store.api.base_url == "https://wp.example.com/ai-services/v1"
        await store.services.fetch_services()
        assert str(recorded_requests[0].url) == "https://wp.example.com/ai-services/v1/services"

    def test_receive_services(self, store):
        store.services.receive_services(SERVICES)
        assert store.services.is_service_registered("openai")
        assert not store.services.is_service_registered("anthropic")
        assert store.services.is_service_available("google")
        assert not store.services.is_service_available("openai")
        assert not store.services.is_service_available("anthropic")

    def test_get_available_service(self, store):
        store.services.receive_services(SERVICES)

        service = store.services.get_available_service()
        assert isinstance(service, RemoteGenerativeAIService)
        assert service.get_service_slug() == "google"

        assert store.services.get_available_service("openai") is None
        assert store.services.get_available_service(slugs=["openai"]) is None
        assert store.services.get_available_service(capabilities=["function_calling"]) is not None
        assert store.services.has_available_services(slugs=["openai", "google"])
        assert not store.services.has_available_services(slugs=["anthropic"])


# ========================================================================
# Remote services and models
# ========================================================================


class TestRemoteService:
    @pytest.fixture
    def google(self, store):
        store.services.receive_services(SERVICES)
        return store.services.get_available_service("google")

    @pytest.mark.asyncio
    async def test_metadata_backed_contract(self, google):
        assert await google.is_connected()
        models = await google.list_models()
        assert list(models) == ["gemini-2.0-flash"]
        assert google.metadata.name == "Google (Gemini)"
        assert len(google.get_capabilities()) == 4

    def test_model_capabilities_follow_model_metadata(self, google):
        model = google.get_model({"model": "gemini-2.0-flash"})
        assert isinstance(model, RemoteGenerativeAIModel)
        assert not isinstance(model, WithChatHistory)
        assert not isinstance(model, WithMultimodalInput)

    def test_unknown_model_uses_service_capabilities(self, google):
        model = google.get_model({"model": "gemini-future"})
        assert isinstance(model, WithChatHistory)
        assert isinstance(model, WithFunctionCalling)
        assert isinstance(model, WithMultimodalInput)
        assert type(model) is type(google.get_model())

    @pytest.mark.asyncio
    async def test_generate_text(self, google, recorded_requests):
        model = google.get_model({"model": "gemini-2.0-flash", "generationConfig": {"temperature": 0.2}})
        candidates = await model.generate_text("Hello")

        request = recorded_requests[0]
        assert request.method == "POST"
        assert request.url.path == "/ai-services/v1/services/google:generate-text"
        body = json.loads(request.content)
        assert body["content"] == [{"role": "user", "parts": [{"text": "Hello"}]}]
        assert body["modelParams"]["model"] == "gemini-2.0-flash"
        assert body["modelParams"]["generationConfig"] == {"temperature": 0.2}

        assert candidates[0].content.parts[0].text == "Hi from the server"
        assert candidates[0].finish_reason == "STOP"

    @pytest.mark.asyncio
    async def test_text_only_model_rejects_images(self, google, recorded_requests):
        model = google.get_model({"model": "gemini-2.0-flash"})
        with pytest.raises(ValueError, match="multimodal"):
            await model.generate_text(
                [{"text": "Look"}, {"inlineData": {"mimeType": "image/png", "data": "QUJD"}}]
            )
        assert recorded_requests == []

    @pytest.mark.asyncio
    async def test_stream_generate_text(self, google, recorded_requests):
        chunks = [chunk async for chunk in google.get_model().stream_generate_text("Hello")]
        assert recorded_requests[0].url.path == "/ai-services/v1/services/google:stream-generate-text"
        assert [c[0].content.parts[0].text for c in chunks] == ["Hi ", "there"]

    @pytest.mark.asyncio
    async def test_chat_through_server(self, google):
        chat = google.get_model().start_chat()
        response = await chat.send_message("Hello")
        assert response.parts[0].text == "Hi from the server"
        assert len(chat.get_history()) == 2

    @pytest.mark.asyncio
    async def test_server_error(self, store):
        store.services.receive_services(
            [{"slug": "anthropic", "isAvailable": True, "capabilities": ["text_generation"]}]
        )
        model = store.services.get_available_service("anthropic").get_model()
        with pytest.raises(GenerativeAIError) as exc_info:
            await model.generate_text("Hi")
        assert exc_info.value.status_code == 404
        assert exc_info.value.provider == "ai_services"


# ========================================================================
# Settings store
# ========================================================================


class TestSettingsStore:
    def test_before_load(self, store):
        assert store.settings.get_settings() is None
        assert store.settings.get_setting("model") is None

    @pytest.mark.asyncio
    async def test_fetch_and_edit(self, store):
        await store.settings.fetch_settings()
        assert store.settings.get_setting("model") == "gemini-2.0-flash"
        assert not store.settings.has_modified_settings()

        store.settings.set_setting("temperature", 0.9)
        assert store.settings.has_modified_settings()
        assert store.settings.get_settings() == {"model": "gemini-2.0-flash", "temperature": 0.9}

        # Setting the saved value again discards the edit
        store.settings.set_setting("temperature", 0.5)
        assert not store.settings.has_modified_settings()

    @pytest.mark.asyncio
    async def test_save_sends_only_edits(self, store, recorded_requests):
        await store.settings.fetch_settings()
        store.settings.set_setting("model", "gemini-1.5-pro")
        saved = await store.settings.save_settings()

        request = recorded_requests[-1]
        assert request.method == "POST"
        assert json.loads(request.content) == {"model": "gemini-1.5-pro"}
        assert saved == {"model": "gemini-1.5-pro", "temperature": 0.5}
        assert not store.settings.has_modified_settings()

    @pytest.mark.asyncio
    async def test_save_without_edits_is_noop(self, store, recorded_requests):
        await store.settings.fetch_settings()
        await store.settings.save_settings()
        assert len(recorded_requests) == 1

    @pytest.mark.asyncio
    async def test_edits_before_load(self, store):
        store.settings.set_setting("model", "x")
        assert store.settings.get_setting("model") == "x"
        assert store.settings.get_settings() is None

    @pytest.mark.asyncio
    async def test_aclose(self, store):
        await store.aclose()
        with pytest.raises(RuntimeError):
            await store.services.fetch_services()
