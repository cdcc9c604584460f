"""Generation configuration, tools and model parameters."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field, field_validator

from ai_services.types.base import WireModel
from ai_services.types.content import Content
from ai_services.types.enums import AICapability, FunctionCallMode


class GenerationConfig(WireModel):
    """Provider-agnostic generation settings.

    ``temperature`` uses a canonical 0.0 to 1.0 range; adapters rescale it to
    whatever the provider expects. Unknown keys are kept as additional args
    and passed through to the provider request unchanged.
    """

    model_config = ConfigDict(extra="allow")

    stop_sequences: list[str] | None = None
    response_mime_type: str | None = None
    response_schema: dict[str, Any] | None = None
    candidate_count: int | None = Field(default=None, ge=1)
    max_output_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=1.0)
    top_p: float | None = Field(default=None, ge=0.0)
    top_k: int | None = Field(default=None, ge=1)
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    response_logprobs: bool | None = None
    logprobs: int | None = None

    @property
    def additional_args(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class FunctionDeclaration(WireModel):
    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = None


class FunctionDeclarationsTool(WireModel):
    function_declarations: list[FunctionDeclaration] = Field(default_factory=list)


# Only function declarations are modelled; other tool shapes are rejected
# by the adapters that receive them.
Tool = FunctionDeclarationsTool
Tools = list[Tool]


def parse_tools(data: Any) -> list[Tool]:
    if data is None:
        return []
    if isinstance(data, (FunctionDeclarationsTool, dict)):
        data = [data]
    tools: list[Tool] = []
    for item in data:
        if isinstance(item, FunctionDeclarationsTool):
            tools.append(item)
        elif isinstance(item, dict) and (
            "functionDeclarations" in item or "function_declarations" in item
        ):
            tools.append(FunctionDeclarationsTool.model_validate(item))
        else:
            raise ValueError(
                "Invalid tool: Only function declarations tools are supported."
            )
    return tools


class ToolConfig(WireModel):
    function_call_mode: FunctionCallMode = Field(default=FunctionCallMode.AUTO, validate_default=True)
    allowed_function_names: list[str] = Field(default_factory=list)

    @field_validator("function_call_mode", mode="before")
    @classmethod
    def _lowercase_mode(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class ModelParams(WireModel):
    """Parameters for retrieving a model from a service.

    Extra keys are kept for provider-specific parameters such as Google's
    ``safetySettings``.
    """

    model_config = ConfigDict(extra="allow")

    model: str | None = None
    feature: str | None = None
    capabilities: list[AICapability] = Field(default_factory=list)
    generation_config: GenerationConfig | None = None
    tools: list[Tool] | None = None
    tool_config: ToolConfig | None = None
    system_instruction: Content | None = None

    @field_validator("tools", mode="before")
    @classmethod
    def _parse_tools(cls, value: Any) -> Any:
        if value is None:
            return None
        return parse_tools(value)

    @field_validator("system_instruction", mode="before")
    @classmethod
    def _format_system_instruction(cls, value: Any) -> Any:
        if value is None:
            return None
        from ai_services.util.formatter import format_system_instruction

        return format_system_instruction(value)

    @classmethod
    def coerce(cls, value: ModelParams | dict[str, Any] | None) -> ModelParams:
        if isinstance(value, cls):
            return value
        return cls.model_validate(value or {})

    def get_extra(self, *keys: str) -> Any:
        """Return the first provider-specific extra present under any of ``keys``."""
        extra = self.model_extra or {}
        for key in keys:
            if key in extra:
                return extra[key]
        return None


class ModelMetadata(WireModel):
    slug: str
    name: str = ""
    capabilities: list[AICapability] = Field(default_factory=list)


class ServiceMetadata(WireModel):
    """What the server reports about one registered service."""

    slug: str
    name: str = ""
    is_available: bool = False
    capabilities: list[AICapability] = Field(default_factory=list)
    available_models: dict[str, ModelMetadata] = Field(default_factory=dict)
