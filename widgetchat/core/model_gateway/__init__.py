"""
Model Gateway package.

Exports:
  - ModelGateway, GenerationResult: Provider selection with fallback
  - ModelProvider and the OpenAI/Gemini/Bedrock implementations
"""

from widgetchat.core.model_gateway.gateway import FALLBACK_MODEL_ID, GenerationResult, ModelGateway
from widgetchat.core.model_gateway.providers import (
    BedrockProvider,
    GeminiProvider,
    LangChainProvider,
    ModelProvider,
    OpenAIProvider,
    ProviderReply,
    build_providers,
)

__all__ = [
    "FALLBACK_MODEL_ID",
    "GenerationResult",
    "ModelGateway",
    "BedrockProvider",
    "GeminiProvider",
    "LangChainProvider",
    "ModelProvider",
    "OpenAIProvider",
    "ProviderReply",
    "build_providers",
]
