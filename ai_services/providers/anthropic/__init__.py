"""Anthropic (Claude) provider."""

from ai_services.providers.anthropic.model import AnthropicAIModel
from ai_services.providers.anthropic.service import AnthropicAIService

__all__ = ["AnthropicAIModel", "AnthropicAIService"]
