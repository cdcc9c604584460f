"""Capability matching for services and models."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from ai_services.types import AICapability, ModelMetadata


def normalize_capabilities(capabilities: Iterable[AICapability | str] | None) -> set[AICapability]:
    return {AICapability(capability) for capability in capabilities or ()}


def has_capabilities(
    supported: Iterable[AICapability | str], required: Iterable[AICapability | str] | None
) -> bool:
    return normalize_capabilities(required) <= normalize_capabilities(supported)


def find_model_slug(
    models: Mapping[str, ModelMetadata],
    capabilities: Iterable[AICapability | str] | None = None,
) -> str | None:
    """Return the first model slug that supports all ``capabilities``."""
    for slug, metadata in models.items():
        if has_capabilities(metadata.capabilities, capabilities):
            return slug
    return None
