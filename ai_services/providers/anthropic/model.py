"""Anthropic messages adapter."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from anthropic import APIError, APITimeoutError, AsyncAnthropic, InternalServerError, RateLimitError

from ai_services.contracts import GenerativeAIModel, WithFunctionCalling, WithMultimodalInput
from ai_services.exceptions import GenerativeAIError
from ai_services.generation import ChatHistoryMixin, TextGenerationMixin
from ai_services.types import (
    Candidate,
    Candidates,
    Content,
    ContentRole,
    FileDataPart,
    FunctionCallPart,
    FunctionResponsePart,
    GenerationConfig,
    InlineDataPart,
    ModelParams,
    TextPart,
    Tool,
    ToolConfig,
    strip_data_url_prefix,
)
from ai_services.util.helpers import content_to_text
from ai_services.util.transformer import filter_empty, transform_generation_config_params

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (RateLimitError, APITimeoutError, InternalServerError)

# The messages API requires max_tokens on every request.
DEFAULT_MAX_TOKENS = 4096

_DOCUMENT_TYPES = ("application/pdf", "text/plain")


def _to_dict(obj: Any) -> dict[str, Any]:
    if isinstance(obj, dict):
        return obj
    return obj.model_dump(exclude_none=True)


def _unsupported(mime_type: str) -> GenerativeAIError:
    return GenerativeAIError(
        "anthropic",
        "prepare_request",
        f"The Anthropic API does not support {mime_type} input; only text, image and document parts are supported.",
    )


def _parse_tool_input(raw: str) -> dict[str, Any]:
    """Parse the tool input JSON accumulated from ``input_json_delta`` events."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise GenerativeAIError("anthropic", "response", f"Invalid tool input JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise GenerativeAIError("anthropic", "response", "Tool input must be a JSON object.")
    return parsed


def _media_block(part: InlineDataPart | FileDataPart) -> dict[str, Any]:
    mime_type = part.mime_type
    if mime_type.startswith("image/"):
        block_type = "image"
    elif mime_type in _DOCUMENT_TYPES:
        block_type = "document"
    else:
        raise _unsupported(mime_type)

    if isinstance(part, FileDataPart):
        return {"type": block_type, "source": {"type": "url", "url": part.file_uri}}
    return {
        "type": block_type,
        "source": {
            "type": "base64",
            "media_type": mime_type,
            "data": strip_data_url_prefix(part.base64_data),
        },
    }


def content_to_message(content: Content) -> dict[str, Any]:
    role = "assistant" if content.role == ContentRole.MODEL else "user"
    blocks: list[dict[str, Any]] = []
    for part in content.parts:
        if isinstance(part, TextPart):
            blocks.append({"type": "text", "text": part.text})
        elif isinstance(part, (InlineDataPart, FileDataPart)):
            blocks.append(_media_block(part))
        elif isinstance(part, FunctionCallPart):
            blocks.append(
                {"type": "tool_use", "id": part.id or part.name, "name": part.name, "input": part.args}
            )
        elif isinstance(part, FunctionResponsePart):
            blocks.append(
                {
                    "type": "tool_result",
                    "tool_use_id": part.id or part.name,
                    "content": json.dumps(part.response),
                }
            )
    return {"role": role, "content": blocks}


GENERATION_CONFIG_TRANSFORMERS = {
    "stop_sequences": lambda config: config.stop_sequences,
    "max_tokens": lambda config: config.max_output_tokens,
    # Anthropic temperature already ranges from 0.0 to 1.0.
    "temperature": lambda config: config.temperature,
    "top_p": lambda config: config.top_p,
    "top_k": lambda config: config.top_k,
}

_UNSUPPORTED_CONFIG = (
    "candidate_count",
    "presence_penalty",
    "frequency_penalty",
    "response_logprobs",
    "logprobs",
)


class AnthropicAIModel(
    TextGenerationMixin,
    ChatHistoryMixin,
    WithFunctionCalling,
    WithMultimodalInput,
    GenerativeAIModel,
):
    """A Claude model of the Anthropic messages API, called through the async SDK."""

    def __init__(
        self,
        client: AsyncAnthropic,
        model: str,
        model_params: ModelParams | dict[str, Any] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._request_options = dict(request_options or {})

        params = ModelParams.coerce(model_params)
        self._tools: list[Tool] | None = params.tools
        self._tool_config: ToolConfig | None = params.tool_config
        self._generation_config: GenerationConfig | None = params.generation_config
        self._system_instruction: Content | None = params.system_instruction

    def get_model_slug(self) -> str:
        return self._model

    def prepare_generate_text_params(self, contents: list[Content]) -> dict[str, Any]:
        params: dict[str, Any] = {
            "messages": [content_to_message(content) for content in contents],
            "max_tokens": DEFAULT_MAX_TOKENS,
        }
        if self._system_instruction:
            params["system"] = content_to_text(self._system_instruction)
        if self._tools:
            params["tools"] = [
                {
                    "name": declaration.name,
                    "description": declaration.description or "",
                    "input_schema": declaration.parameters
                    or {"type": "object", "properties": {}},
                }
                for tool in self._tools
                for declaration in tool.function_declarations
            ]
        if self._tool_config:
            params["tool_choice"] = self._prepare_tool_choice(self._tool_config)
        if self._generation_config:
            config = self._generation_config
            ignored = [name for name in _UNSUPPORTED_CONFIG if getattr(config, name) is not None]
            if ignored:
                logger.warning("Anthropic does not support %s; ignoring", ", ".join(ignored))
            if config.response_mime_type == "application/json":
                logger.debug("Anthropic has no JSON response mode; relying on the prompt")
            params = {**config.additional_args, **params}
            params = transform_generation_config_params(
                params, config, GENERATION_CONFIG_TRANSFORMERS
            )
        return filter_empty(params)

    @staticmethod
    def _prepare_tool_choice(tool_config: ToolConfig) -> dict[str, Any]:
        if tool_config.function_call_mode != "any":
            return {"type": "auto"}
        names = tool_config.allowed_function_names
        if len(names) == 1:
            return {"type": "tool", "name": names[0]}
        return {"type": "any"}

    @staticmethod
    def _sdk_options(request_options: dict[str, Any]) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if "timeout" in request_options:
            options["timeout"] = request_options["timeout"]
        if "headers" in request_options:
            options["extra_headers"] = request_options["headers"]
        return options

    async def _send_generate_text_request(
        self, contents: list[Content], request_options: dict[str, Any]
    ) -> Candidates:
        params = self.prepare_generate_text_params(contents)
        try:
            message = await self._client.messages.create(
                model=self._model, **params, **self._sdk_options(request_options)
            )
        except APIError as e:
            raise GenerativeAIError(
                "anthropic", "generate_text", e, retryable=isinstance(e, RETRYABLE_ERRORS)
            ) from e
        return self.get_response_candidates(_to_dict(message))

    async def _send_stream_generate_text_request(
        self, contents: list[Content], request_options: dict[str, Any]
    ) -> AsyncIterator[Candidates]:
        params = self.prepare_generate_text_params(contents)
        try:
            stream = await self._client.messages.create(
                model=self._model, stream=True, **params, **self._sdk_options(request_options)
            )
            metadata: dict[str, Any] = {}
            tool_blocks: dict[int, dict[str, Any]] = {}
            async for event in stream:
                candidates = self._process_stream_event(_to_dict(event), metadata, tool_blocks)
                if candidates is not None:
                    yield candidates
        except APIError as e:
            raise GenerativeAIError(
                "anthropic", "stream_generate_text", e, retryable=isinstance(e, RETRYABLE_ERRORS)
            ) from e

    def get_response_candidates(self, message_data: dict[str, Any]) -> Candidates:
        if "content" not in message_data:
            raise GenerativeAIError("anthropic", "response", "The response is missing the 'content' key.")

        parts: list[TextPart | FunctionCallPart] = []
        for block in message_data["content"]:
            if block.get("type") == "text" and block.get("text"):
                parts.append(TextPart(text=block["text"]))
            elif block.get("type") == "tool_use":
                parts.append(self._function_call_part(block.get("id"), block["name"], block.get("input")))

        extra = {k: v for k, v in message_data.items() if k not in ("content", "role")}
        if not parts:
            message = "The response does not include any candidates with content."
            if message_data.get("stop_reason"):
                message += f" Finish reason: {message_data['stop_reason']}"
            raise GenerativeAIError("anthropic", "response", message)
        return Candidates([Candidate(content=Content(role=ContentRole.MODEL, parts=parts), **extra)])

    @staticmethod
    def _function_call_part(call_id: str | None, name: str, args: Any) -> FunctionCallPart:
        return FunctionCallPart.model_validate(
            {"functionCall": {"id": call_id, "name": name, "args": args or {}}}
        )

    def _process_stream_event(
        self,
        event: dict[str, Any],
        metadata: dict[str, Any],
        tool_blocks: dict[int, dict[str, Any]],
    ) -> Candidates | None:
        """Translate one stream event into a chunk of candidates.

        ``metadata`` and ``tool_blocks`` carry state across events: message
        metadata accumulates from ``message_start`` and ``message_delta``;
        tool input JSON arrives in fragments and is emitted once its block
        stops. Events without new content or metadata yield nothing.
        """
        event_type = event.get("type")
        parts: list[TextPart | FunctionCallPart] = []

        if event_type == "message_start":
            message = event.get("message") or {}
            metadata.update({k: v for k, v in message.items() if k not in ("content", "role")})
            return None
        if event_type == "content_block_start":
            block = event.get("content_block") or {}
            if block.get("type") == "tool_use":
                tool_blocks[event.get("index", 0)] = {
                    "id": block.get("id"),
                    "name": block.get("name", ""),
                    "json": "",
                }
            elif block.get("type") == "text" and block.get("text"):
                parts.append(TextPart(text=block["text"]))
        elif event_type == "content_block_delta":
            delta = event.get("delta") or {}
            if delta.get("type") == "text_delta" and delta.get("text"):
                parts.append(TextPart(text=delta["text"]))
            elif delta.get("type") == "input_json_delta":
                block = tool_blocks.get(event.get("index", 0))
                if block is not None:
                    block["json"] += delta.get("partial_json", "")
        elif event_type == "content_block_stop":
            block = tool_blocks.pop(event.get("index", 0), None)
            if block is not None:
                args = _parse_tool_input(block["json"])
                parts.append(self._function_call_part(block["id"], block["name"], args))
        elif event_type == "message_delta":
            metadata.update(event.get("delta") or {})
            if event.get("usage"):
                metadata["usage"] = {**metadata.get("usage", {}), **event["usage"]}
            return Candidates([Candidate(**metadata)])
        else:
            return None

        if not parts:
            return None
        return Candidates(
            [Candidate(content=Content(role=ContentRole.MODEL, parts=parts), **metadata)]
        )
