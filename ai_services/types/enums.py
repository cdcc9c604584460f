"""Enums shared across services, models and content."""

from __future__ import annotations

from enum import Enum


class ContentRole(str, Enum):
    """Who authored a piece of content."""

    USER = "user"
    MODEL = "model"
    SYSTEM = "system"


class AICapability(str, Enum):
    """Capabilities a service or model can support."""

    TEXT_GENERATION = "text_generation"
    CHAT_HISTORY = "chat_history"
    FUNCTION_CALLING = "function_calling"
    MULTIMODAL_INPUT = "multimodal_input"


class FunctionCallMode(str, Enum):
    AUTO = "auto"
    ANY = "any"
