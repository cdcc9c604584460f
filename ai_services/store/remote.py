"""Client-side stand-ins for services registered on the server.

A remote model generates text by calling the server's
``services/<slug>:generate-text`` routes, which run the request against the
real provider and return canonical candidates.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from functools import lru_cache
from typing import Any

from ai_services.contracts import (
    GenerativeAIModel,
    GenerativeAIService,
    WithFunctionCalling,
    WithMultimodalInput,
)
from ai_services.generation import ChatHistoryMixin, TextGenerationMixin
from ai_services.store.client import AIServicesAPIClient
from ai_services.types import AICapability, Candidates, Content, ModelMetadata, ModelParams, ServiceMetadata
from ai_services.util.models import normalize_capabilities


class RemoteGenerativeAIModel(TextGenerationMixin, GenerativeAIModel):
    """Model that delegates generation to the server."""

    def __init__(
        self,
        api: AIServicesAPIClient,
        service_slug: str,
        model_params: ModelParams,
        request_options: dict[str, Any] | None = None,
    ) -> None:
        self._api = api
        self._service_slug = service_slug
        self._model_params = model_params
        self._request_options = dict(request_options or {})

    def get_model_slug(self) -> str:
        return self._model_params.model or ""

    def _request_data(self, contents: list[Content]) -> dict[str, Any]:
        return {
            "content": [content.to_dict() for content in contents],
            "modelParams": self._model_params.to_dict(),
        }

    def _parse_candidates(self, data: Any, previous: Candidates | None = None) -> Candidates:
        if isinstance(data, dict):
            if "candidates" not in data:
                raise self._api.create_missing_response_key_exception("candidates")
            data = data["candidates"]
        if not isinstance(data, list):
            raise self._api.create_response_exception("The response does not contain candidates.")
        return Candidates.from_list(data)

    async def _send_generate_text_request(
        self, contents: list[Content], request_options: dict[str, Any]
    ) -> Candidates:
        request = self._api.create_post_request(
            f"services/{self._service_slug}:generate-text",
            self._request_data(contents),
            request_options,
        )
        response = await self._api.make_request(request)
        return await self._api.process_response_data(response, self._parse_candidates)

    async def _send_stream_generate_text_request(
        self, contents: list[Content], request_options: dict[str, Any]
    ) -> AsyncIterator[Candidates]:
        request = self._api.create_post_request(
            f"services/{self._service_slug}:stream-generate-text",
            self._request_data(contents),
            request_options,
        )
        response = await self._api.make_request(request)
        async for candidates in self._api.process_response_stream(response, self._parse_candidates):
            yield candidates


_CAPABILITY_MIXINS = (
    (AICapability.CHAT_HISTORY, ChatHistoryMixin),
    (AICapability.FUNCTION_CALLING, WithFunctionCalling),
    (AICapability.MULTIMODAL_INPUT, WithMultimodalInput),
)


@lru_cache(maxsize=None)
def _model_class(capabilities: frozenset[AICapability]) -> type[RemoteGenerativeAIModel]:
    # Capability checks are isinstance checks, so the model class has to
    # carry the mixins for what the remote model supports.
    mixins = tuple(mixin for capability, mixin in _CAPABILITY_MIXINS if capability in capabilities)
    if not mixins:
        return RemoteGenerativeAIModel
    return type("RemoteGenerativeAIModel", (RemoteGenerativeAIModel, *mixins), {})


class RemoteGenerativeAIService(GenerativeAIService):
    """Service described by the server's services listing."""

    def __init__(self, metadata: ServiceMetadata, api: AIServicesAPIClient) -> None:
        self._metadata = metadata
        self._api = api

    @property
    def metadata(self) -> ServiceMetadata:
        return self._metadata

    def get_service_slug(self) -> str:
        return self._metadata.slug

    def get_capabilities(self) -> list[AICapability]:
        return list(self._metadata.capabilities)

    async def is_connected(self) -> bool:
        return self._metadata.is_available

    async def list_models(
        self, request_options: dict[str, Any] | None = None
    ) -> dict[str, ModelMetadata]:
        return dict(self._metadata.available_models)

    def get_model(
        self,
        model_params: ModelParams | dict[str, Any] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> RemoteGenerativeAIModel:
        params = ModelParams.coerce(model_params)
        model_metadata = self._metadata.available_models.get(params.model or "")
        capabilities = model_metadata.capabilities if model_metadata else self._metadata.capabilities
        cls = _model_class(frozenset(normalize_capabilities(capabilities)))
        return cls(self._api, self._metadata.slug, params, request_options)


__all__ = ["RemoteGenerativeAIModel", "RemoteGenerativeAIService"]
