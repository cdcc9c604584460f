"""Convenience helpers for building prompts and reading responses."""

from __future__ import annotations

import base64
import mimetypes
from collections.abc import AsyncIterator, Iterable
from pathlib import Path

import httpx

from ai_services.streaming import CandidatesStreamProcessor
from ai_services.types import (
    Candidate,
    Candidates,
    Content,
    ContentRole,
    InlineData,
    InlineDataPart,
    TextPart,
    to_data_url,
)


def text_to_content(text: str, role: ContentRole | str = ContentRole.USER) -> Content:
    return Content(role=role, parts=[TextPart(text=text)])


def text_and_data_to_content(
    text: str,
    file: str | Path,
    mime_type: str | None = None,
    role: ContentRole | str = ContentRole.USER,
) -> Content:
    """Build multimodal content from a prompt and an attachment.

    The text comes first, followed by the file (a local path or an http(s)
    URL) as inline base64 data.
    """
    mime_type = mime_type or guess_mime_type(file)
    return _text_and_data_content(text, base64_encode_file(file), mime_type, role)


async def text_and_data_to_content_async(
    text: str,
    file: str | Path,
    mime_type: str | None = None,
    role: ContentRole | str = ContentRole.USER,
) -> Content:
    """Like ``text_and_data_to_content`` but downloads URLs without blocking."""
    mime_type = mime_type or guess_mime_type(file)
    data = await base64_encode_file_async(file)
    return _text_and_data_content(text, data, mime_type, role)


def _text_and_data_content(
    text: str, data: str, mime_type: str, role: ContentRole | str
) -> Content:
    return Content(
        role=role,
        parts=[
            TextPart(text=text),
            InlineDataPart(inline_data=InlineData(mime_type=mime_type, data=data)),
        ],
    )


def content_to_text(content: Content) -> str:
    """Return the combined text of the leading run of text parts.

    Non-text parts before the first text part are skipped; once text was
    found, the first non-text part ends the run so no interrupted text is
    returned.
    """
    texts: list[str] = []
    for part in content.parts:
        if not isinstance(part, TextPart):
            if texts:
                break
            continue
        texts.append(part.text)
    return "\n\n".join(texts)


def get_text_from_contents(contents: Iterable[Content]) -> str:
    for content in contents:
        text = content_to_text(content)
        if text:
            return text
    return ""


def get_text_content_from_contents(contents: Iterable[Content]) -> Content | None:
    for content in contents:
        if content_to_text(content):
            return content
    return None


def get_candidate_contents(candidates: Iterable[Candidate]) -> list[Content]:
    return [candidate.content for candidate in candidates if candidate.content is not None]


def process_candidates_stream(generator: AsyncIterator[Candidates]) -> CandidatesStreamProcessor:
    return CandidatesStreamProcessor(generator)


def guess_mime_type(file: str | Path) -> str:
    mime_type, _ = mimetypes.guess_type(str(file))
    if mime_type is None:
        raise ValueError(f"Cannot determine the MIME type of {file}")
    return mime_type


def base64_encode_file(file: str | Path, mime_type: str = "") -> str:
    """Base64-encode a local file or a remote URL.

    With ``mime_type`` the result is returned as a ``data:`` URL.
    """
    source = str(file)
    if _is_url(source):
        resp = httpx.get(source, timeout=30.0, follow_redirects=True)
        resp.raise_for_status()
        raw = resp.content
    else:
        raw = Path(source).read_bytes()
    return _encode(raw, mime_type)


async def base64_encode_file_async(file: str | Path, mime_type: str = "") -> str:
    source = str(file)
    if _is_url(source):
        async with httpx.AsyncClient() as client:
            resp = await client.get(source, timeout=30.0, follow_redirects=True)
            resp.raise_for_status()
            raw = resp.content
    else:
        raw = Path(source).read_bytes()
    return _encode(raw, mime_type)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _encode(raw: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(raw).decode("ascii")
    if mime_type:
        return to_data_url(encoded, mime_type)
    return encoded
