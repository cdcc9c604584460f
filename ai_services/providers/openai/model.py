"""OpenAI chat completions adapter."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from openai import APIError, APITimeoutError, AsyncOpenAI, InternalServerError, RateLimitError

from ai_services.contracts import GenerativeAIModel, WithFunctionCalling, WithMultimodalInput
from ai_services.exceptions import GenerativeAIError
from ai_services.generation import ChatHistoryMixin, TextGenerationMixin
from ai_services.streaming import merge_candidates_chunk
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
    to_data_url,
)
from ai_services.util.helpers import content_to_text
from ai_services.util.transformer import filter_empty, transform_generation_config_params

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (RateLimitError, APITimeoutError, InternalServerError)

_ROLES = {
    ContentRole.USER: "user",
    ContentRole.MODEL: "assistant",
    ContentRole.SYSTEM: "system",
}

_AUDIO_FORMATS = {"audio/wav": "wav", "audio/x-wav": "wav", "audio/mpeg": "mp3", "audio/mp3": "mp3"}


def _to_dict(obj: Any) -> dict[str, Any]:
    if isinstance(obj, dict):
        return obj
    return obj.model_dump(exclude_none=True)


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {"_raw": raw}
        return parsed if isinstance(parsed, dict) else {"_raw": raw}
    return {}


def _unsupported(mime_type: str) -> GenerativeAIError:
    return GenerativeAIError(
        "openai",
        "prepare_request",
        f"The OpenAI API does not support {mime_type} input; only text, image and audio parts are supported.",
    )


def _transform_media_part(part: InlineDataPart | FileDataPart) -> dict[str, Any]:
    mime_type = part.mime_type
    if isinstance(part, FileDataPart):
        if not mime_type.startswith("image/"):
            raise _unsupported(mime_type)
        return {"type": "image_url", "image_url": {"url": part.file_uri}}
    if mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": to_data_url(part.base64_data, mime_type)}}
    if mime_type in _AUDIO_FORMATS:
        return {
            "type": "input_audio",
            "input_audio": {
                "data": strip_data_url_prefix(part.base64_data),
                "format": _AUDIO_FORMATS[mime_type],
            },
        }
    raise _unsupported(mime_type)


def content_to_messages(content: Content) -> list[dict[str, Any]]:
    """Translate one Content into chat messages.

    Function responses become separate ``tool`` messages following the
    message built from the remaining parts.
    """
    role = _ROLES[ContentRole(content.role)]
    content_parts: list[dict[str, Any]] = []
    tool_calls: list[dict[str, Any]] = []
    tool_messages: list[dict[str, Any]] = []

    for part in content.parts:
        if isinstance(part, TextPart):
            content_parts.append({"type": "text", "text": part.text})
        elif isinstance(part, (InlineDataPart, FileDataPart)):
            content_parts.append(_transform_media_part(part))
        elif isinstance(part, FunctionCallPart):
            tool_calls.append(
                {
                    "id": part.id or part.name,
                    "type": "function",
                    "function": {"name": part.name, "arguments": json.dumps(part.args)},
                }
            )
        elif isinstance(part, FunctionResponsePart):
            tool_messages.append(
                {
                    "role": "tool",
                    "tool_call_id": part.id or part.name,
                    "content": json.dumps(part.response),
                }
            )

    messages: list[dict[str, Any]] = []
    if content_parts or tool_calls:
        message: dict[str, Any] = {"role": role}
        if role == "user":
            message["content"] = content_parts
        else:
            # Assistant and system messages only carry text.
            message["content"] = content_to_text(content) or None
        if tool_calls:
            message["tool_calls"] = tool_calls
        messages.append(message)
    messages.extend(tool_messages)
    return messages


def _response_format(config: GenerationConfig) -> dict[str, Any] | None:
    if config.response_mime_type != "application/json":
        return None
    if config.response_schema:
        return {
            "type": "json_schema",
            "json_schema": {"name": "response", "schema": config.response_schema},
        }
    return {"type": "json_object"}


GENERATION_CONFIG_TRANSFORMERS = {
    "stop": lambda config: config.stop_sequences,
    "n": lambda config: config.candidate_count,
    "max_completion_tokens": lambda config: config.max_output_tokens,
    # OpenAI temperature ranges from 0.0 to 2.0.
    "temperature": lambda config: None if config.temperature is None else config.temperature * 2.0,
    "top_p": lambda config: config.top_p,
    "presence_penalty": lambda config: config.presence_penalty,
    "frequency_penalty": lambda config: config.frequency_penalty,
    "logprobs": lambda config: config.response_logprobs,
    "top_logprobs": lambda config: config.logprobs,
    "response_format": _response_format,
}


class OpenAIAIModel(
    TextGenerationMixin,
    ChatHistoryMixin,
    WithFunctionCalling,
    WithMultimodalInput,
    GenerativeAIModel,
):
    """A chat model of the OpenAI API, called through the async SDK."""

    def __init__(
        self,
        client: AsyncOpenAI,
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
        messages: list[dict[str, Any]] = []
        if self._system_instruction:
            messages.append(
                {"role": "system", "content": content_to_text(self._system_instruction)}
            )
        for content in contents:
            messages.extend(content_to_messages(content))

        params: dict[str, Any] = {"messages": messages}
        if self._tools:
            params["tools"] = [
                {
                    "type": "function",
                    "function": filter_empty(
                        {
                            "name": declaration.name,
                            "description": declaration.description,
                            "parameters": declaration.parameters,
                        }
                    ),
                }
                for tool in self._tools
                for declaration in tool.function_declarations
            ]
        if self._tool_config:
            params["tool_choice"] = self._prepare_tool_choice(self._tool_config)
        if self._generation_config:
            if self._generation_config.top_k is not None:
                logger.warning("OpenAI does not support top_k; ignoring it")
            params = {**self._generation_config.additional_args, **params}
            params = transform_generation_config_params(
                params, self._generation_config, GENERATION_CONFIG_TRANSFORMERS
            )
        return filter_empty(params)

    @staticmethod
    def _prepare_tool_choice(tool_config: ToolConfig) -> str | dict[str, Any]:
        if tool_config.function_call_mode != "any":
            return "auto"
        names = tool_config.allowed_function_names
        if len(names) == 1:
            return {"type": "function", "function": {"name": names[0]}}
        if names:
            logger.debug("OpenAI cannot restrict tool choice to %d functions; using 'required'", len(names))
        return "required"

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
            response = await self._client.chat.completions.create(
                model=self._model, **params, **self._sdk_options(request_options)
            )
        except APIError as e:
            raise GenerativeAIError(
                "openai", "generate_text", e, retryable=isinstance(e, RETRYABLE_ERRORS)
            ) from e
        return self.get_response_candidates(_to_dict(response))

    async def _send_stream_generate_text_request(
        self, contents: list[Content], request_options: dict[str, Any]
    ) -> AsyncIterator[Candidates]:
        params = self.prepare_generate_text_params(contents)
        try:
            stream = await self._client.chat.completions.create(
                model=self._model, stream=True, **params, **self._sdk_options(request_options)
            )
            metadata: list[dict[str, Any]] = []
            tool_buffers: dict[int, dict[int, dict[str, str]]] = {}
            async for chunk in stream:
                data = _to_dict(chunk)
                if not data.get("choices"):
                    continue
                candidates, metadata = self._get_chunk_candidates(data, metadata, tool_buffers)
                yield candidates
        except APIError as e:
            raise GenerativeAIError(
                "openai", "stream_generate_text", e, retryable=isinstance(e, RETRYABLE_ERRORS)
            ) from e

    def get_response_candidates(self, response_data: dict[str, Any]) -> Candidates:
        if "choices" not in response_data:
            raise GenerativeAIError("openai", "response", "The response is missing the 'choices' key.")

        other_data = {k: v for k, v in response_data.items() if k != "choices"}
        candidates = Candidates()
        for choice in response_data["choices"]:
            message = choice.get("message") or {}
            parts: list[TextPart | FunctionCallPart] = []
            if message.get("content"):
                parts.append(TextPart(text=message["content"]))
            for call in message.get("tool_calls") or []:
                function = call.get("function") or {}
                parts.append(
                    FunctionCallPart.model_validate(
                        {
                            "functionCall": {
                                "id": call.get("id"),
                                "name": function.get("name", ""),
                                "args": _parse_arguments(function.get("arguments")),
                            }
                        }
                    )
                )
            extra = {k: v for k, v in {**choice, **other_data}.items() if k != "message"}
            content = Content(role=ContentRole.MODEL, parts=parts) if parts else None
            candidates.add_candidate(Candidate(content=content, **extra))

        if not any(candidate.content for candidate in candidates):
            reasons = list(dict.fromkeys(c.finish_reason for c in candidates if c.finish_reason))
            message = "The response does not include any candidates with content."
            if reasons:
                message += f" Finish reason: {', '.join(reasons)}"
            raise GenerativeAIError("openai", "response", message)
        return candidates

    def _get_chunk_candidates(
        self,
        chunk_data: dict[str, Any],
        metadata: list[dict[str, Any]],
        tool_buffers: dict[int, dict[int, dict[str, str]]],
    ) -> tuple[Candidates, list[dict[str, Any]]]:
        """Turn one streamed chunk into candidates holding only the new parts.

        Choices are positioned by their ``index``; metadata of earlier chunks
        is merged by position so every yielded candidate carries the latest
        finish reason, ids and usage. Tool call argument fragments are
        buffered per choice and emitted once that choice finishes.
        """
        choices = chunk_data["choices"]
        size = max(len(metadata), max(choice.get("index", 0) for choice in choices) + 1)
        positioned: list[dict[str, Any]] = [{} for _ in range(size)]
        parts_by_index: dict[int, list[TextPart | FunctionCallPart]] = {}

        for choice in choices:
            index = choice.get("index", 0)
            delta = choice.get("delta") or {}
            positioned[index] = {k: v for k, v in choice.items() if k != "delta"}
            parts: list[TextPart | FunctionCallPart] = []
            if delta.get("content"):
                parts.append(TextPart(text=delta["content"]))
            for call in delta.get("tool_calls") or []:
                buffer = tool_buffers.setdefault(index, {}).setdefault(
                    call.get("index", 0), {"id": "", "name": "", "arguments": ""}
                )
                function = call.get("function") or {}
                buffer["id"] = call.get("id") or buffer["id"]
                buffer["name"] += function.get("name") or ""
                buffer["arguments"] += function.get("arguments") or ""
            if choice.get("finish_reason") and index in tool_buffers:
                for buffer in tool_buffers.pop(index).values():
                    parts.append(
                        FunctionCallPart.model_validate(
                            {
                                "functionCall": {
                                    "id": buffer["id"] or None,
                                    "name": buffer["name"],
                                    "args": _parse_arguments(buffer["arguments"]),
                                }
                            }
                        )
                    )
            parts_by_index[index] = parts

        other_data = {k: v for k, v in chunk_data.items() if k != "choices"}
        merged = merge_candidates_chunk(metadata, {"choices": positioned, **other_data}, key="choices")
        candidates = Candidates()
        for index, candidate_data in enumerate(merged):
            parts = parts_by_index.get(index) or []
            content = Content(role=ContentRole.MODEL, parts=parts) if parts else None
            candidates.add_candidate(Candidate(content=content, **candidate_data))
        return candidates, merged
