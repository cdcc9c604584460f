from ai_services.api.client import GenerativeAIAPIClient

__all__ = ["GenerativeAIAPIClient"]
