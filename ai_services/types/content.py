"""Content and candidate types."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import ConfigDict, Field, RootModel, field_validator

from ai_services.types.base import WireModel
from ai_services.types.enums import ContentRole
from ai_services.types.parts import Part, TextPart, parse_parts


class Content(WireModel):
    """One turn of a conversation: a role and an ordered list of parts."""

    role: ContentRole = Field(default=ContentRole.USER, validate_default=True)
    parts: list[Part] = Field(default_factory=list)

    @field_validator("parts", mode="before")
    @classmethod
    def _parse_parts(cls, value: Any) -> list[Part]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("parts must be a list")
        return parse_parts(value)

    def text_parts(self) -> list[TextPart]:
        return [part for part in self.parts if isinstance(part, TextPart)]


# Keys providers use for the finish reason, checked in order.
_FINISH_REASON_KEYS = ("finishReason", "finish_reason", "stop_reason")


class Candidate(WireModel):
    """A single generated option: its content plus provider metadata.

    Anything besides ``content`` is kept verbatim as additional data, so
    provider-specific fields such as safety ratings or usage survive the
    round trip.
    """

    model_config = ConfigDict(extra="allow")

    content: Content | None = None

    @property
    def additional_data(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    @property
    def finish_reason(self) -> str | None:
        extra = self.model_extra or {}
        for key in _FINISH_REASON_KEYS:
            if extra.get(key):
                return extra[key]
        return None

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.model_extra or {})
        if self.content is not None:
            data["content"] = self.content.to_dict()
        return data


class Candidates(RootModel[list[Candidate]]):
    """Ordered list of candidates returned for one request."""

    root: list[Candidate] = Field(default_factory=list)

    def __iter__(self) -> Iterator[Candidate]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> Candidate:
        return self.root[index]

    def add_candidate(self, candidate: Candidate) -> None:
        self.root.append(candidate)

    def to_list(self) -> list[dict[str, Any]]:
        return [candidate.to_dict() for candidate in self.root]

    @classmethod
    def from_list(cls, data: list[dict[str, Any]]) -> Candidates:
        return cls([Candidate.model_validate(item) for item in data])
