"""Turn loosely typed prompt input into canonical content."""

from __future__ import annotations

from typing import Any

from ai_services.contracts import WithChatHistory, WithFunctionCalling, WithMultimodalInput
from ai_services.types import (
    Content,
    ContentRole,
    FunctionCallPart,
    FunctionResponsePart,
    TextPart,
    parse_part,
)
from ai_services.types.parts import PART_KEYS, PART_TYPES, parse_parts


def _is_part_like(value: Any) -> bool:
    if isinstance(value, dict):
        return not PART_KEYS.isdisjoint(value)
    return isinstance(value, PART_TYPES)


def format_new_content(value: Any, role: ContentRole | str = ContentRole.USER) -> Content:
    """Format a single prompt into a Content.

    Accepts a string, a part (object or dict), a list of parts, a Content or
    a Content dict.
    """
    role = ContentRole(role)
    if isinstance(value, Content):
        return value
    if isinstance(value, str):
        return Content(role=role, parts=[TextPart(text=value)])
    if _is_part_like(value):
        return Content(role=role, parts=[parse_part(value)])
    if isinstance(value, dict) and "parts" in value:
        return Content.model_validate(value)
    if isinstance(value, list) and all(_is_part_like(item) for item in value):
        return Content(role=role, parts=parse_parts(value))
    raise ValueError(f"Invalid content: cannot format {type(value).__name__}")


def format_new_contents(value: Any) -> list[Content]:
    """Format one prompt or a conversation into a list of Content."""
    if isinstance(value, list) and not value:
        raise ValueError("The content must not be empty.")
    if isinstance(value, list) and not all(_is_part_like(item) for item in value):
        return [format_new_content(item) for item in value]
    return [format_new_content(value)]


def format_system_instruction(value: Any) -> Content:
    content = format_new_content(value, ContentRole.SYSTEM)
    if content.role != ContentRole.SYSTEM:
        content = content.model_copy(update={"role": ContentRole.SYSTEM.value})
    return content


def format_and_validate_new_contents(value: Any, model: object) -> list[Content]:
    """Format prompt input and check it against what ``model`` supports.

    Raises ValueError when the input needs a capability the model lacks or
    when the conversation does not end with a user turn.
    """
    contents = format_new_contents(value)
    if not contents:
        raise ValueError("The content must not be empty.")

    if len(contents) > 1 and not isinstance(model, WithChatHistory):
        raise ValueError(
            "The model does not support chat history. Only one content prompt is supported."
        )

    for content in contents:
        if not content.parts:
            raise ValueError("Each content must have at least one part.")
        for part in content.parts:
            if isinstance(part, TextPart):
                continue
            if isinstance(part, (FunctionCallPart, FunctionResponsePart)):
                if not isinstance(model, WithFunctionCalling):
                    raise ValueError("The model does not support function calling.")
                continue
            if not isinstance(model, WithMultimodalInput):
                raise ValueError(
                    "The model does not support multimodal input. Only text parts are supported."
                )

    if contents[-1].role != ContentRole.USER:
        raise ValueError("The last content must have the user role.")

    return contents
