"""Part variants that make up a piece of content."""

from __future__ import annotations

import re
from typing import Any, Union

from pydantic import Field

from ai_services.types.base import WireModel

_DATA_URL_PREFIX = re.compile(r"^data:[a-z0-9-]+/[a-z0-9.+-]+;base64,", re.IGNORECASE)


def strip_data_url_prefix(data: str) -> str:
    """Return base64 data without a leading ``data:<mime>;base64,`` prefix."""
    return _DATA_URL_PREFIX.sub("", data, count=1)


def to_data_url(data: str, mime_type: str) -> str:
    """Return base64 data as a data URL for the given MIME type."""
    return f"data:{mime_type};base64,{strip_data_url_prefix(data)}"


class TextPart(WireModel):
    text: str


class InlineData(WireModel):
    mime_type: str
    data: str


class InlineDataPart(WireModel):
    """Binary data embedded as base64, optionally as a data URL."""

    inline_data: InlineData

    @property
    def mime_type(self) -> str:
        return self.inline_data.mime_type

    @property
    def base64_data(self) -> str:
        return self.inline_data.data


class FileData(WireModel):
    mime_type: str
    file_uri: str


class FileDataPart(WireModel):
    """Reference to a file hosted elsewhere."""

    file_data: FileData

    @property
    def mime_type(self) -> str:
        return self.file_data.mime_type

    @property
    def file_uri(self) -> str:
        return self.file_data.file_uri


class FunctionCall(WireModel):
    id: str | None = None
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class FunctionCallPart(WireModel):
    function_call: FunctionCall

    @property
    def id(self) -> str | None:
        return self.function_call.id

    @property
    def name(self) -> str:
        return self.function_call.name

    @property
    def args(self) -> dict[str, Any]:
        return self.function_call.args


class FunctionResponse(WireModel):
    id: str | None = None
    name: str
    response: Any = None


class FunctionResponsePart(WireModel):
    function_response: FunctionResponse

    @property
    def id(self) -> str | None:
        return self.function_response.id

    @property
    def name(self) -> str:
        return self.function_response.name

    @property
    def response(self) -> Any:
        return self.function_response.response


Part = Union[TextPart, InlineDataPart, FileDataPart, FunctionCallPart, FunctionResponsePart]

PART_TYPES = (TextPart, InlineDataPart, FileDataPart, FunctionCallPart, FunctionResponsePart)

_PART_TYPES: dict[str, type[WireModel]] = {
    "text": TextPart,
    "inlineData": InlineDataPart,
    "inline_data": InlineDataPart,
    "fileData": FileDataPart,
    "file_data": FileDataPart,
    "functionCall": FunctionCallPart,
    "function_call": FunctionCallPart,
    "functionResponse": FunctionResponsePart,
    "function_response": FunctionResponsePart,
}

PART_KEYS = frozenset(_PART_TYPES)


def parse_part(data: Any) -> Part:
    """Build a part from its dict form, picking the variant by key."""
    if isinstance(data, PART_TYPES):
        return data
    if not isinstance(data, dict):
        raise ValueError(f"Invalid part: expected a dict, got {type(data).__name__}")
    for key, part_cls in _PART_TYPES.items():
        if key in data:
            return part_cls.model_validate(data)
    raise ValueError(f"Invalid part: unknown keys {sorted(data)}")


def parse_parts(data: list[Any]) -> list[Part]:
    return [parse_part(item) for item in data]
