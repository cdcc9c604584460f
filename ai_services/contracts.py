"""Interfaces implemented by services and models.

A service is the entry point for one AI provider and hands out models. A
model declares what it can do by inheriting the capability interfaces below;
callers and validation code check them with ``isinstance``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from ai_services.exceptions import GenerativeAIError
from ai_services.types import AICapability, Candidates, Content, ModelMetadata, ModelParams

if TYPE_CHECKING:
    from ai_services.chat import ChatSession


class GenerativeAIModel(ABC):
    """A model of a service, bound to its parameters and request options."""

    @abstractmethod
    def get_model_slug(self) -> str: ...


class WithTextGeneration(ABC):
    @abstractmethod
    async def generate_text(
        self,
        content: Any,
        request_options: dict[str, Any] | None = None,
    ) -> Candidates:
        """Generate candidates for the given prompt or conversation."""
        ...

    @abstractmethod
    def stream_generate_text(
        self,
        content: Any,
        request_options: dict[str, Any] | None = None,
    ) -> AsyncIterator[Candidates]:
        """Yield candidates chunks as the provider streams them."""
        ...


class WithChatHistory(ABC):
    @abstractmethod
    def start_chat(self, history: list[Content] | None = None) -> ChatSession: ...


class WithFunctionCalling(ABC):
    """Marker: the model accepts tools and returns function calls."""


class WithMultimodalInput(ABC):
    """Marker: the model accepts inline and file data parts."""


class WithAPIClient(ABC):
    @abstractmethod
    def get_api_client(self) -> Any: ...


class GenerativeAIService(ABC):
    """A generative AI provider such as Google, OpenAI or Anthropic."""

    @abstractmethod
    def get_service_slug(self) -> str: ...

    @abstractmethod
    def get_capabilities(self) -> list[AICapability]: ...

    @abstractmethod
    async def list_models(
        self, request_options: dict[str, Any] | None = None
    ) -> dict[str, ModelMetadata]: ...

    @abstractmethod
    def get_model(
        self,
        model_params: ModelParams | dict[str, Any] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> GenerativeAIModel: ...

    async def is_connected(self) -> bool:
        """Check credentials by listing models."""
        try:
            await self.list_models()
        except GenerativeAIError:
            return False
        return True
