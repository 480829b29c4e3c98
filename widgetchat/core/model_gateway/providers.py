"""
Language-model providers.

Each backend is a ModelProvider over a LangChain chat model. Chat models are
built lazily on first use so a missing credential surfaces as a provider
failure at call time, which the gateway turns into a fallback.

Dependencies: langchain_core, langchain_openai, langchain_google_genai, langchain_aws
System role: Model Gateway backends
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from widgetchat.configs.llm import LLMSettings
from widgetchat.core.exceptions import ModelProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderReply:
    """Raw provider answer with token usage when the backend reports it."""

    content: str
    input_tokens: int | None = None
    output_tokens: int | None = None


def to_langchain_messages(prompt: str, history: list[dict[str, str]]) -> list[BaseMessage]:
    """
    Convert role/content history plus the current prompt to LangChain messages.

    Unknown roles are sent as user messages.
    """
    messages: list[BaseMessage] = []
    for entry in history:
        role = entry.get("role")
        content = entry.get("content", "")
        if role == "assistant":
            messages.append(AIMessage(content=content))
        elif role == "system":
            messages.append(SystemMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))
    messages.append(HumanMessage(content=prompt))
    return messages


def extract_text(message: Any) -> str:
    """
    Flatten a chat model response to text.

    Providers return either a plain string or a list of content blocks.
    """
    content = getattr(message, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return ""


class ModelProvider(ABC):
    """Single language-model backend."""

    name: str

    @abstractmethod
    async def generate(self, prompt: str, history: list[dict[str, str]]) -> ProviderReply:
        """
        Generate a reply.

        Raises:
            ModelProviderError: If the backend fails or returns an empty answer
        """


class LangChainProvider(ModelProvider):
    """ModelProvider backed by a LangChain chat model."""

    def __init__(self, name: str, model: BaseChatModel | None = None) -> None:
        self.name = name
        self._model = model

    @abstractmethod
    def _build_model(self) -> BaseChatModel:
        """Construct the backend chat model."""

    @property
    def model(self) -> BaseChatModel:
        if self._model is None:
            self._model = self._build_model()
            logger.info(f"Initialized chat model for provider {self.name}")
        return self._model

    async def generate(self, prompt: str, history: list[dict[str, str]]) -> ProviderReply:
        try:
            response = await self.model.ainvoke(to_langchain_messages(prompt, history))
        except ModelProviderError:
            raise
        except Exception as e:
            raise ModelProviderError(
                f"{type(e).__name__}: {e}",
                provider=self.name,
            ) from e

        text = extract_text(response)
        if not text.strip():
            raise ModelProviderError("Empty response", provider=self.name)

        usage = getattr(response, "usage_metadata", None) or {}
        return ProviderReply(
            content=text,
            input_tokens=usage.get("input_tokens"),
            output_tokens=usage.get("output_tokens"),
        )


class OpenAIProvider(LangChainProvider):
    """OpenAI chat completions via langchain_openai."""

    def __init__(self, settings: LLMSettings, model: BaseChatModel | None = None) -> None:
        super().__init__("openai", model)
        self._settings = settings

    def _build_model(self) -> BaseChatModel:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=self._settings.openai_model_id,
            api_key=self._settings.openai_api_key,
            temperature=self._settings.temperature,
        )


class GeminiProvider(LangChainProvider):
    """Google Gemini via langchain_google_genai."""

    def __init__(self, settings: LLMSettings, model: BaseChatModel | None = None) -> None:
        super().__init__("gemini", model)
        self._settings = settings

    def _build_model(self) -> BaseChatModel:
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=self._settings.gemini_model_id,
            google_api_key=self._settings.google_api_key,
            temperature=self._settings.temperature,
        )


class BedrockProvider(LangChainProvider):
    """AWS Bedrock Converse via langchain_aws."""

    def __init__(self, settings: LLMSettings, model: BaseChatModel | None = None) -> None:
        super().__init__("bedrock", model)
        self._settings = settings

    def _build_model(self) -> BaseChatModel:
        from langchain_aws import ChatBedrockConverse

        return ChatBedrockConverse(
            model=self._settings.bedrock_model_id,
            region_name=self._settings.bedrock_region,
            temperature=self._settings.temperature,
        )


def build_providers(settings: LLMSettings) -> dict[str, ModelProvider]:
    """Provider lookup table keyed by model identifier."""
    providers: list[ModelProvider] = [
        OpenAIProvider(settings),
        GeminiProvider(settings),
        BedrockProvider(settings),
    ]
    return {provider.name: provider for provider in providers}
