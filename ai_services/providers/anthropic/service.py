"""Anthropic service: model listing and model creation."""

from __future__ import annotations

from typing import Any

from anthropic import APIError, AsyncAnthropic

from ai_services.contracts import GenerativeAIService, WithAPIClient
from ai_services.exceptions import GenerativeAIError
from ai_services.providers.anthropic.model import RETRYABLE_ERRORS, AnthropicAIModel
from ai_services.types import AICapability, ModelMetadata, ModelParams

DEFAULT_MODEL = "claude-haiku-4-5-20251001"

_ALL_CAPABILITIES = [
    AICapability.CHAT_HISTORY,
    AICapability.FUNCTION_CALLING,
    AICapability.MULTIMODAL_INPUT,
    AICapability.TEXT_GENERATION,
]


class AnthropicAIService(GenerativeAIService, WithAPIClient):
    """Service for the Claude models of the Anthropic API."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        default_model: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        client: AsyncAnthropic | None = None,
    ) -> None:
        self._client = client or AsyncAnthropic(
            api_key=api_key,  # falls back to ANTHROPIC_API_KEY env var
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        self._default_model = default_model or DEFAULT_MODEL

    def get_service_slug(self) -> str:
        return "anthropic"

    def get_capabilities(self) -> list[AICapability]:
        return list(_ALL_CAPABILITIES)

    def get_api_client(self) -> AsyncAnthropic:
        return self._client

    async def list_models(
        self, request_options: dict[str, Any] | None = None
    ) -> dict[str, ModelMetadata]:
        options = request_options or {}
        try:
            page = await self._client.models.list(
                limit=1000, **({"timeout": options["timeout"]} if "timeout" in options else {})
            )
        except APIError as e:
            raise GenerativeAIError(
                "anthropic", "list_models", e, retryable=isinstance(e, RETRYABLE_ERRORS)
            ) from e

        return {
            model.id: ModelMetadata(
                slug=model.id,
                name=getattr(model, "display_name", None) or model.id,
                capabilities=list(_ALL_CAPABILITIES),
            )
            for model in page.data
        }

    def get_model(
        self,
        model_params: ModelParams | dict[str, Any] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> AnthropicAIModel:
        params = ModelParams.coerce(model_params)
        return AnthropicAIModel(
            self._client, params.model or self._default_model, params, request_options
        )
