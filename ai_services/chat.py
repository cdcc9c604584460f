"""Chat sessions that keep conversation history between turns."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from ai_services.exceptions import GenerativeAIError
from ai_services.streaming import CandidatesStreamProcessor
from ai_services.types import Candidates, Content, ContentRole
from ai_services.util.formatter import format_new_content

logger = logging.getLogger(__name__)


def _first_content(candidates: Candidates) -> Content:
    for candidate in candidates:
        if candidate.content is not None:
            return candidate.content
    raise GenerativeAIError("chat", "send_message", "The response did not include any content.")


class ChatSession:
    """A conversation with a model.

    History is only extended once the model responded successfully, so a
    failed turn can be retried without corrupting the conversation.
    """

    def __init__(self, model: Any, history: list[Content] | None = None) -> None:
        self._model = model
        self._history: list[Content] = [
            format_new_content(item) for item in (history or [])
        ]

    def get_history(self) -> list[Content]:
        return list(self._history)

    async def send_message(
        self, content: Any, request_options: dict[str, Any] | None = None
    ) -> Content:
        new_content = format_new_content(content, ContentRole.USER)
        candidates = await self._model.generate_text(
            [*self._history, new_content], request_options
        )
        response = _first_content(candidates)
        self._history.extend([new_content, response])
        return response

    async def stream_send_message(
        self, content: Any, request_options: dict[str, Any] | None = None
    ) -> AsyncIterator[Content]:
        """Yield response content chunks; history is updated after the last one."""
        new_content = format_new_content(content, ContentRole.USER)
        processor = CandidatesStreamProcessor()
        async for chunk in self._model.stream_generate_text(
            [*self._history, new_content], request_options
        ):
            processor.add_chunk(chunk)
            if len(chunk) and chunk[0].content is not None:
                yield chunk[0].content

        complete = processor.get_complete()
        if complete is None:
            raise GenerativeAIError(
                "chat", "stream_send_message", "The response did not include any content."
            )
        response = _first_content(complete)
        self._history.extend([new_content, response])
        logger.debug("Chat history now has %d contents", len(self._history))
