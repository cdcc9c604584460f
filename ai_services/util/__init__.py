"""Formatting, transformation and convenience helpers."""

from ai_services.util.formatter import (
    format_and_validate_new_contents,
    format_new_content,
    format_new_contents,
    format_system_instruction,
)
from ai_services.util.helpers import (
    base64_encode_file,
    base64_encode_file_async,
    content_to_text,
    get_candidate_contents,
    get_text_content_from_contents,
    get_text_from_contents,
    process_candidates_stream,
    text_and_data_to_content,
    text_and_data_to_content_async,
    text_to_content,
)
from ai_services.util.models import find_model_slug, has_capabilities

__all__ = [
    "base64_encode_file",
    "base64_encode_file_async",
    "content_to_text",
    "find_model_slug",
    "format_and_validate_new_contents",
    "format_new_content",
    "format_new_contents",
    "format_system_instruction",
    "get_candidate_contents",
    "get_text_content_from_contents",
    "get_text_from_contents",
    "has_capabilities",
    "process_candidates_stream",
    "text_and_data_to_content",
    "text_and_data_to_content_async",
    "text_to_content",
]
