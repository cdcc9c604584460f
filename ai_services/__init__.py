"""Provider-agnostic access to generative AI services."""

from ai_services.chat import ChatSession
from ai_services.contracts import (
    GenerativeAIModel,
    GenerativeAIService,
    WithAPIClient,
    WithChatHistory,
    WithFunctionCalling,
    WithMultimodalInput,
    WithTextGeneration,
)
from ai_services.exceptions import GenerativeAIError, ServiceNotAvailableError
from ai_services.streaming import CandidatesStreamProcessor, merge_candidates_chunk

__version__ = "0.1.0"

__all__ = [
    "CandidatesStreamProcessor",
    "ChatSession",
    "GenerativeAIError",
    "GenerativeAIModel",
    "GenerativeAIService",
    "ServiceNotAvailableError",
    "WithAPIClient",
    "WithChatHistory",
    "WithFunctionCalling",
    "WithMultimodalInput",
    "WithTextGeneration",
    "merge_candidates_chunk",
]
