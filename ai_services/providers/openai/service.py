"""OpenAI service: model listing and model creation."""

from __future__ import annotations

from typing import Any

from openai import APIError, AsyncOpenAI

from ai_services.contracts import GenerativeAIService, WithAPIClient
from ai_services.exceptions import GenerativeAIError
from ai_services.providers.openai.model import RETRYABLE_ERRORS, OpenAIAIModel
from ai_services.types import AICapability, ModelMetadata, ModelParams

DEFAULT_MODEL = "gpt-4o"

_ALL_CAPABILITIES = [
    AICapability.CHAT_HISTORY,
    AICapability.FUNCTION_CALLING,
    AICapability.MULTIMODAL_INPUT,
    AICapability.TEXT_GENERATION,
]

_CHAT_PREFIXES = ("gpt-", "chatgpt-", "o1", "o3", "o4")
# Models that exist under a chat prefix but do not serve chat completions.
_EXCLUDED_MARKERS = ("audio", "realtime", "tts", "transcribe", "search", "instruct", "image")


def _capabilities_for(slug: str) -> list[AICapability] | None:
    if not slug.startswith(_CHAT_PREFIXES):
        return None
    if any(marker in slug for marker in _EXCLUDED_MARKERS):
        return None
    if slug.startswith("gpt-3.5"):
        return [
            AICapability.CHAT_HISTORY,
            AICapability.FUNCTION_CALLING,
            AICapability.TEXT_GENERATION,
        ]
    return list(_ALL_CAPABILITIES)


class OpenAIAIService(GenerativeAIService, WithAPIClient):
    """Service for the chat models of the OpenAI API."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        default_model: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(
            api_key=api_key,  # falls back to OPENAI_API_KEY env var
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        self._default_model = default_model or DEFAULT_MODEL

    def get_service_slug(self) -> str:
        return "openai"

    def get_capabilities(self) -> list[AICapability]:
        return list(_ALL_CAPABILITIES)

    def get_api_client(self) -> AsyncOpenAI:
        return self._client

    async def list_models(
        self, request_options: dict[str, Any] | None = None
    ) -> dict[str, ModelMetadata]:
        options = request_options or {}
        try:
            page = await self._client.models.list(
                **({"timeout": options["timeout"]} if "timeout" in options else {})
            )
        except APIError as e:
            raise GenerativeAIError(
                "openai", "list_models", e, retryable=isinstance(e, RETRYABLE_ERRORS)
            ) from e

        models: dict[str, ModelMetadata] = {}
        for model in sorted(page.data, key=lambda m: m.id):
            capabilities = _capabilities_for(model.id)
            if capabilities is None:
                continue
            models[model.id] = ModelMetadata(slug=model.id, name=model.id, capabilities=capabilities)
        return models

    def get_model(
        self,
        model_params: ModelParams | dict[str, Any] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> OpenAIAIModel:
        params = ModelParams.coerce(model_params)
        return OpenAIAIModel(
            self._client, params.model or self._default_model, params, request_options
        )
