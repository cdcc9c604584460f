"""Canonical content model shared by every provider."""

from ai_services.types.config import (
    FunctionDeclaration,
    FunctionDeclarationsTool,
    GenerationConfig,
    ModelMetadata,
    ModelParams,
    ServiceMetadata,
    Tool,
    ToolConfig,
    Tools,
    parse_tools,
)
from ai_services.types.content import Candidate, Candidates, Content
from ai_services.types.enums import AICapability, ContentRole, FunctionCallMode
from ai_services.types.parts import (
    FileData,
    FileDataPart,
    FunctionCall,
    FunctionCallPart,
    FunctionResponse,
    FunctionResponsePart,
    InlineData,
    InlineDataPart,
    Part,
    TextPart,
    parse_part,
    parse_parts,
    strip_data_url_prefix,
    to_data_url,
)

__all__ = [
    "AICapability",
    "Candidate",
    "Candidates",
    "Content",
    "ContentRole",
    "FileData",
    "FileDataPart",
    "FunctionCall",
    "FunctionCallMode",
    "FunctionCallPart",
    "FunctionDeclaration",
    "FunctionDeclarationsTool",
    "FunctionResponse",
    "FunctionResponsePart",
    "GenerationConfig",
    "InlineData",
    "InlineDataPart",
    "ModelMetadata",
    "ModelParams",
    "Part",
    "ServiceMetadata",
    "TextPart",
    "Tool",
    "ToolConfig",
    "Tools",
    "parse_part",
    "parse_parts",
    "parse_tools",
    "strip_data_url_prefix",
    "to_data_url",
]
