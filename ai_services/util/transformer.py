"""Apply per-key transformer callables to build provider request dicts."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from ai_services.types import Content, GenerationConfig

ContentTransformers = Mapping[str, Callable[[Content], Any]]
GenerationConfigTransformers = Mapping[str, Callable[[GenerationConfig], Any]]


def is_empty(value: Any) -> bool:
    """True for values a provider request should leave out.

    Zero and False are meaningful settings, so only None and empty
    containers or strings count as empty.
    """
    if value is None:
        return True
    if isinstance(value, (str, list, dict, tuple)):
        return len(value) == 0
    return False


def transform_content(content: Content, transformers: ContentTransformers) -> dict[str, Any]:
    return {key: transform(content) for key, transform in transformers.items()}


def transform_generation_config_params(
    params: dict[str, Any],
    config: GenerationConfig,
    transformers: GenerationConfigTransformers,
) -> dict[str, Any]:
    """Add transformed generation config values to ``params``, skipping empty ones."""
    result = dict(params)
    for key, transform in transformers.items():
        value = transform(config)
        if not is_empty(value):
            result[key] = value
    return result


def filter_empty(params: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in params.items() if not is_empty(value)}
