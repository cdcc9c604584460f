"""OpenAI provider."""

from ai_services.providers.openai.model import OpenAIAIModel
from ai_services.providers.openai.service import OpenAIAIService

__all__ = ["OpenAIAIModel", "OpenAIAIService"]
