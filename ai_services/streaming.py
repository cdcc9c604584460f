"""Reassemble streamed candidates chunks into complete candidates."""

from __future__ import annotations

import copy
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from ai_services.types import Candidate, Candidates, Content, TextPart

logger = logging.getLogger(__name__)


def merge_candidates_chunk(
    candidates_data: list[dict[str, Any]],
    chunk_data: dict[str, Any],
    key: str = "candidates",
) -> list[dict[str, Any]]:
    """Merge one raw response chunk into the raw candidates seen so far.

    Candidates are matched by their position in the chunk. The chunk's
    candidate fields and its top-level fields (usage, model version, ...)
    overwrite what the previous chunks set. Positions beyond the current list
    extend it.
    """
    if key not in chunk_data:
        raise ValueError(f"The response chunk is missing the {key!r} key.")

    other_data = {k: v for k, v in chunk_data.items() if k != key}
    merged = [dict(candidate) for candidate in candidates_data]
    for index, candidate_data in enumerate(chunk_data[key]):
        if index < len(merged):
            merged[index] = {**merged[index], **candidate_data, **other_data}
        else:
            merged.append({**candidate_data, **other_data})
    return merged


def _merge_content(existing: Content | None, chunk: Content | None) -> Content | None:
    if chunk is None:
        return existing
    if existing is None:
        return chunk.model_copy(deep=True)

    parts = list(existing.parts)
    for part in chunk.parts:
        if isinstance(part, TextPart) and parts and isinstance(parts[-1], TextPart):
            parts[-1] = TextPart(text=parts[-1].text + part.text)
        else:
            parts.append(part)
    return Content(role=existing.role, parts=parts)


class CandidatesStreamProcessor:
    """Fold candidates chunks from a stream into one Candidates value.

    Either let ``read_all`` drain the generator, or read it yourself and pass
    each chunk to ``add_chunk``.
    """

    def __init__(self, generator: AsyncIterator[Candidates] | None = None) -> None:
        self._generator = generator
        self._candidates: Candidates | None = None

    def add_chunk(self, candidates: Candidates) -> None:
        if self._candidates is None:
            self._candidates = copy.deepcopy(candidates)
            return

        merged = Candidates()
        current = list(self._candidates)
        for index, chunk_candidate in enumerate(candidates):
            if index >= len(current):
                current.append(copy.deepcopy(chunk_candidate))
                continue
            existing = current[index]
            current[index] = Candidate(
                content=_merge_content(existing.content, chunk_candidate.content),
                **{**existing.additional_data, **chunk_candidate.additional_data},
            )
        for candidate in current:
            merged.add_candidate(candidate)
        self._candidates = merged

    def get_complete(self) -> Candidates | None:
        return self._candidates

    async def read_all(
        self,
        chunk_callback: Callable[[Candidates], Awaitable[None] | None] | None = None,
    ) -> Candidates:
        if self._generator is None:
            raise ValueError("No generator to read from.")
        chunks = 0
        async for chunk in self._generator:
            self.add_chunk(chunk)
            chunks += 1
            if chunk_callback is not None:
                result = chunk_callback(chunk)
                if isinstance(result, Awaitable):
                    await result
        logger.debug("Processed %d candidates chunks", chunks)
        return self._candidates if self._candidates is not None else Candidates()
