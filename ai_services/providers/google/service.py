"""Google AI service: model listing and model creation."""

from __future__ import annotations

from typing import Any

import httpx

from ai_services.contracts import GenerativeAIService, WithAPIClient
from ai_services.providers.google.api_client import GoogleAIAPIClient
from ai_services.providers.google.model import GoogleAIModel
from ai_services.types import AICapability, ModelMetadata, ModelParams

DEFAULT_MODEL = "gemini-2.0-flash"

_ALL_CAPABILITIES = [
    AICapability.CHAT_HISTORY,
    AICapability.FUNCTION_CALLING,
    AICapability.MULTIMODAL_INPUT,
    AICapability.TEXT_GENERATION,
]


def _model_preference(slug: str) -> tuple[bool, bool]:
    # Stable Gemini models first, then experimental/preview ones, then the rest.
    return (not slug.startswith("gemini"), "exp" in slug or "preview" in slug)


class GoogleAIService(GenerativeAIService, WithAPIClient):
    """Service for the Gemini models of the Google AI API."""

    def __init__(
        self,
        api_key: str,
        *,
        default_model: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api = GoogleAIAPIClient(
            api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            http_client=http_client,
        )
        self._default_model = default_model or DEFAULT_MODEL

    def get_service_slug(self) -> str:
        return "google"

    def get_capabilities(self) -> list[AICapability]:
        return list(_ALL_CAPABILITIES)

    def get_api_client(self) -> GoogleAIAPIClient:
        return self._api

    async def list_models(
        self, request_options: dict[str, Any] | None = None
    ) -> dict[str, ModelMetadata]:
        request = self._api.create_list_models_request(request_options)
        response = await self._api.make_request(request)
        return await self._api.process_response_data(response, self._parse_models)

    def _parse_models(self, response_data: dict[str, Any]) -> dict[str, ModelMetadata]:
        if "models" not in response_data:
            raise self._api.create_missing_response_key_exception("models")

        models: list[ModelMetadata] = []
        for model_data in response_data["models"]:
            if "generateContent" not in model_data.get("supportedGenerationMethods", []):
                continue
            slug = model_data["name"].removeprefix("models/")
            if slug.startswith("gemini"):
                capabilities = list(_ALL_CAPABILITIES)
            else:
                capabilities = [AICapability.CHAT_HISTORY, AICapability.TEXT_GENERATION]
            models.append(
                ModelMetadata(
                    slug=slug,
                    name=model_data.get("displayName") or slug,
                    capabilities=capabilities,
                )
            )
        models.sort(key=lambda metadata: _model_preference(metadata.slug))
        return {metadata.slug: metadata for metadata in models}

    def get_model(
        self,
        model_params: ModelParams | dict[str, Any] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> GoogleAIModel:
        params = ModelParams.coerce(model_params)
        return GoogleAIModel(
            self._api, params.model or self._default_model, params, request_options
        )
