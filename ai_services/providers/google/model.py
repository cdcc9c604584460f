"""Gemini model adapter: canonical content to Google AI request JSON and back."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from ai_services.contracts import GenerativeAIModel, WithFunctionCalling, WithMultimodalInput
from ai_services.exceptions import GenerativeAIError
from ai_services.generation import ChatHistoryMixin, TextGenerationMixin
from ai_services.providers.google.api_client import GoogleAIAPIClient
from ai_services.providers.google.safety import parse_safety_settings
from ai_services.streaming import merge_candidates_chunk
from ai_services.types import (
    Candidate,
    Candidates,
    Content,
    ContentRole,
    FileDataPart,
    FunctionCallMode,
    FunctionCallPart,
    FunctionResponsePart,
    GenerationConfig,
    InlineDataPart,
    ModelParams,
    TextPart,
    Tool,
    ToolConfig,
    parse_parts,
    strip_data_url_prefix,
)
from ai_services.util.transformer import (
    filter_empty,
    transform_content,
    transform_generation_config_params,
)

_UNSUPPORTED_PART = (
    "The Google AI API only supports text, image, audio, function call, and "
    "function response parts."
)


def _is_supported_media(mime_type: str) -> bool:
    return mime_type.startswith(("image/", "audio/"))


def _transform_parts(content: Content) -> list[dict[str, Any]]:
    parts: list[dict[str, Any]] = []
    for part in content.parts:
        if isinstance(part, TextPart):
            parts.append({"text": part.text})
        elif isinstance(part, InlineDataPart):
            if not _is_supported_media(part.mime_type):
                raise GenerativeAIError("google", "prepare_request", _UNSUPPORTED_PART)
            # inlineData blobs must not carry a data URL prefix.
            parts.append(
                {
                    "inlineData": {
                        "mimeType": part.mime_type,
                        "data": strip_data_url_prefix(part.base64_data),
                    }
                }
            )
        elif isinstance(part, FileDataPart):
            if not _is_supported_media(part.mime_type):
                raise GenerativeAIError("google", "prepare_request", _UNSUPPORTED_PART)
            parts.append({"fileData": {"mimeType": part.mime_type, "fileUri": part.file_uri}})
        elif isinstance(part, FunctionCallPart):
            parts.append({"functionCall": {"name": part.name, "args": part.args}})
        elif isinstance(part, FunctionResponsePart):
            parts.append({"functionResponse": {"name": part.name, "response": part.response}})
        else:
            raise GenerativeAIError("google", "prepare_request", _UNSUPPORTED_PART)
    return parts


CONTENT_TRANSFORMERS = {
    "role": lambda content: content.role,
    "parts": _transform_parts,
}


def _scale_temperature(config: GenerationConfig) -> float | None:
    # Google AI temperature ranges from 0.0 to 2.0.
    return None if config.temperature is None else config.temperature * 2.0


def _json_response_schema(config: GenerationConfig) -> dict[str, Any] | None:
    if config.response_mime_type == "application/json":
        return config.response_schema
    return None


GENERATION_CONFIG_TRANSFORMERS = {
    "stopSequences": lambda config: config.stop_sequences,
    "responseMimeType": lambda config: config.response_mime_type,
    "responseSchema": _json_response_schema,
    "candidateCount": lambda config: config.candidate_count,
    "maxOutputTokens": lambda config: config.max_output_tokens,
    "temperature": _scale_temperature,
    "topP": lambda config: config.top_p,
    "topK": lambda config: config.top_k,
    "presencePenalty": lambda config: config.presence_penalty,
    "frequencyPenalty": lambda config: config.frequency_penalty,
    "responseLogprobs": lambda config: config.response_logprobs,
    "logprobs": lambda config: config.logprobs,
}


def remove_additional_properties(schema: dict[str, Any]) -> dict[str, Any]:
    """Drop ``additionalProperties`` from a JSON schema and its children.

    The Google AI API rejects schemas that contain the key.
    """
    schema = {key: value for key, value in schema.items() if key != "additionalProperties"}
    if isinstance(schema.get("properties"), dict):
        schema["properties"] = {
            name: remove_additional_properties(child) if isinstance(child, dict) else child
            for name, child in schema["properties"].items()
        }
    if isinstance(schema.get("items"), dict):
        schema["items"] = remove_additional_properties(schema["items"])
    return schema


class GoogleAIModel(
    TextGenerationMixin,
    ChatHistoryMixin,
    WithFunctionCalling,
    WithMultimodalInput,
    GenerativeAIModel,
):
    """A Gemini model served by the Google AI API."""

    def __init__(
        self,
        api: GoogleAIAPIClient,
        model: str,
        model_params: ModelParams | dict[str, Any] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> None:
        self._api = api
        self._request_options = dict(request_options or {})
        self._model = model if "/" in model else f"models/{model}"

        params = ModelParams.coerce(model_params)
        self._tools: list[Tool] | None = params.tools
        self._tool_config: ToolConfig | None = params.tool_config
        self._generation_config: GenerationConfig | None = params.generation_config
        self._system_instruction: Content | None = params.system_instruction
        self._safety_settings = parse_safety_settings(
            params.get_extra("safetySettings", "safety_settings")
        )

    def get_model_slug(self) -> str:
        return self._model.removeprefix("models/")

    async def _send_generate_text_request(
        self, contents: list[Content], request_options: dict[str, Any]
    ) -> Candidates:
        params = self.prepare_generate_text_params(contents)
        request = self._api.create_generate_content_request(self._model, params, request_options)
        response = await self._api.make_request(request)
        return await self._api.process_response_data(response, self._get_response_candidates)

    async def _send_stream_generate_text_request(
        self, contents: list[Content], request_options: dict[str, Any]
    ) -> AsyncIterator[Candidates]:
        params = self.prepare_generate_text_params(contents)
        request = self._api.create_stream_generate_content_request(
            self._model, params, request_options
        )
        response = await self._api.make_request(request)
        async for candidates in self._api.process_response_stream(
            response, self._get_response_candidates
        ):
            yield candidates

    def prepare_generate_text_params(self, contents: list[Content]) -> dict[str, Any]:
        params: dict[str, Any] = {
            "contents": [transform_content(content, CONTENT_TRANSFORMERS) for content in contents],
        }
        if self._tools:
            params["tools"] = self._prepare_tools_param(self._tools)
        if self._tool_config:
            params["toolConfig"] = self._prepare_tool_config_param(self._tool_config)
        if self._generation_config:
            params = {**self._generation_config.additional_args, **params}
            params["generationConfig"] = transform_generation_config_params(
                {}, self._generation_config, GENERATION_CONFIG_TRANSFORMERS
            )
        if self._system_instruction:
            params["systemInstruction"] = {"parts": _transform_parts(self._system_instruction)}
        if self._safety_settings:
            params["safetySettings"] = [setting.to_dict() for setting in self._safety_settings]
        return filter_empty(params)

    def _prepare_tools_param(self, tools: list[Tool]) -> list[dict[str, Any]]:
        tools_param = []
        for tool in tools:
            declarations = [
                filter_empty(
                    {
                        "name": declaration.name,
                        "description": declaration.description,
                        "parameters": remove_additional_properties(declaration.parameters)
                        if declaration.parameters
                        else None,
                    }
                )
                for declaration in tool.function_declarations
            ]
            tools_param.append({"functionDeclarations": declarations})
        return tools_param

    @staticmethod
    def _prepare_tool_config_param(tool_config: ToolConfig) -> dict[str, Any]:
        mode = FunctionCallMode(tool_config.function_call_mode).value.upper()
        calling_config: dict[str, Any] = {"mode": mode}
        if mode == "ANY" and tool_config.allowed_function_names:
            calling_config["allowedFunctionNames"] = list(tool_config.allowed_function_names)
        return {"functionCallingConfig": calling_config}

    def _get_response_candidates(
        self,
        response_data: dict[str, Any],
        prev_chunk_candidates: Candidates | None = None,
    ) -> Candidates:
        if "candidates" not in response_data:
            raise self._api.create_missing_response_key_exception("candidates")

        if prev_chunk_candidates is None:
            self._check_non_empty_candidates(response_data["candidates"])
            other_data = {k: v for k, v in response_data.items() if k != "candidates"}
            candidates = Candidates()
            for index, candidate_data in enumerate(response_data["candidates"]):
                extra = {
                    k: v for k, v in {**candidate_data, **other_data}.items() if k != "content"
                }
                candidates.add_candidate(
                    Candidate(content=self._prepare_candidate_content(candidate_data, index), **extra)
                )
            return candidates

        # Subsequent chunk of a streaming response.
        merged = merge_candidates_chunk(prev_chunk_candidates.to_list(), response_data)
        for index, candidate_data in enumerate(response_data["candidates"]):
            # A chunk candidate without content must not repeat the previous
            # chunk's parts.
            content = self._prepare_candidate_content(candidate_data, index)
            if content is None:
                merged[index].pop("content", None)
            else:
                merged[index]["content"] = content.to_dict()
        return Candidates.from_list(merged)

    def _prepare_candidate_content(self, candidate_data: dict[str, Any], index: int) -> Content | None:
        content = candidate_data.get("content")
        if content is None:
            return None
        if "parts" not in content:
            raise self._api.create_missing_response_key_exception(
                f"candidates.{index}.content.parts"
            )
        role = ContentRole.USER if content.get("role") == "user" else ContentRole.MODEL
        return Content(role=role, parts=parse_parts(content["parts"]))

    def _check_non_empty_candidates(self, candidates_data: list[dict[str, Any]]) -> None:
        errors = [
            candidate.get("finishReason", "unknown")
            for candidate in candidates_data
            if "content" not in candidate
        ]
        if len(errors) != len(candidates_data):
            return

        message = "The response does not include any candidates with content."
        reasons = list(dict.fromkeys(error for error in errors if error != "unknown"))
        if reasons:
            message += f" Finish reason: {', '.join(reasons)}"
        raise self._api.create_response_exception(message)
