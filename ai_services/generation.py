"""Shared text generation and chat behaviour for model adapters."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from ai_services.chat import ChatSession
from ai_services.contracts import WithChatHistory, WithTextGeneration
from ai_services.types import Candidates, Content
from ai_services.util.formatter import format_and_validate_new_contents


class TextGenerationMixin(WithTextGeneration):
    """Validates prompts, then hands them to the adapter's request methods.

    Adapters implement ``_send_generate_text_request`` and
    ``_send_stream_generate_text_request`` and may set ``_request_options``
    to defaults that per-call options override.
    """

    _request_options: dict[str, Any] = {}

    async def generate_text(
        self,
        content: Any,
        request_options: dict[str, Any] | None = None,
    ) -> Candidates:
        contents = format_and_validate_new_contents(content, self)
        return await self._send_generate_text_request(
            contents, self._merge_request_options(request_options)
        )

    async def stream_generate_text(
        self,
        content: Any,
        request_options: dict[str, Any] | None = None,
    ) -> AsyncIterator[Candidates]:
        contents = format_and_validate_new_contents(content, self)
        async for candidates in self._send_stream_generate_text_request(
            contents, self._merge_request_options(request_options)
        ):
            yield candidates

    def _merge_request_options(self, request_options: dict[str, Any] | None) -> dict[str, Any]:
        return {**self._request_options, **(request_options or {})}

    @abstractmethod
    async def _send_generate_text_request(
        self, contents: list[Content], request_options: dict[str, Any]
    ) -> Candidates: ...

    @abstractmethod
    def _send_stream_generate_text_request(
        self, contents: list[Content], request_options: dict[str, Any]
    ) -> AsyncIterator[Candidates]: ...


class ChatHistoryMixin(WithChatHistory):
    def start_chat(self, history: list[Content] | None = None) -> ChatSession:
        return ChatSession(self, history)
