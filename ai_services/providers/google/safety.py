"""Google AI safety settings."""

from __future__ import annotations

from typing import Any

from ai_services.types.base import WireModel


class SafetySetting(WireModel):
    """Blocking threshold for one harm category, e.g.
    ``HARM_CATEGORY_HATE_SPEECH`` / ``BLOCK_ONLY_HIGH``."""

    category: str
    threshold: str


def parse_safety_settings(value: Any) -> list[SafetySetting]:
    if not value:
        return []
    settings: list[SafetySetting] = []
    for item in value:
        if isinstance(item, SafetySetting):
            settings.append(item)
        elif isinstance(item, dict):
            settings.append(SafetySetting.model_validate(item))
        else:
            raise ValueError(
                "The safetySettings parameter must contain SafetySetting instances."
            )
    return settings
