"""Google AI (Gemini) provider."""

from ai_services.providers.google.api_client import GoogleAIAPIClient
from ai_services.providers.google.model import GoogleAIModel
from ai_services.providers.google.safety import SafetySetting
from ai_services.providers.google.service import GoogleAIService

__all__ = ["GoogleAIAPIClient", "GoogleAIModel", "GoogleAIService", "SafetySetting"]
