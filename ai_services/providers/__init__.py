"""Provider adapters and the factory that builds services from settings."""

from ai_services.config.models import ServiceSettings
from ai_services.contracts import GenerativeAIService
from ai_services.providers.anthropic import AnthropicAIService
from ai_services.providers.google import GoogleAIService
from ai_services.providers.openai import OpenAIAIService

_SERVICE_MAP: dict[str, type[GenerativeAIService]] = {
    "google": GoogleAIService,
    "openai": OpenAIAIService,
    "anthropic": AnthropicAIService,
}

SERVICE_NAMES = {
    "google": "Google (Gemini)",
    "openai": "OpenAI (GPT)",
    "anthropic": "Anthropic (Claude)",
}


def create_service(slug: str, api_key: str, settings: ServiceSettings) -> GenerativeAIService:
    """Create a provider service from its app-level settings."""
    cls = _SERVICE_MAP.get(slug)
    if cls is None:
        raise ValueError(
            f"Unsupported service: {slug!r}. Supported: {', '.join(_SERVICE_MAP)}"
        )
    return cls(
        api_key,
        default_model=settings.default_model,
        base_url=settings.base_url,
        timeout=settings.timeout,
        max_retries=settings.max_retries,
    )


__all__ = [
    "AnthropicAIService",
    "GoogleAIService",
    "OpenAIAIService",
    "SERVICE_NAMES",
    "create_service",
]
