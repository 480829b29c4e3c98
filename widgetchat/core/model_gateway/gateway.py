"""
Model Gateway.

One call over several providers: the rule's model hint wins over the
configured default; a failing primary gets exactly one fallback attempt on a
different model; if that also fails the caller receives a fixed apology tagged
"fallback". Exceptions never escape `generate`.

Dependencies: asyncio, widgetchat.core.model_gateway.providers
System role: ModelInvoked stage of the orchestration pipeline
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from widgetchat.configs.chat import ChatSettings
from widgetchat.configs.llm import LLMSettings
from widgetchat.core.exceptions import ModelProviderError, ModelTimeoutError
from widgetchat.core.model_gateway.providers import ModelProvider, ProviderReply, build_providers

logger = logging.getLogger(__name__)

FALLBACK_MODEL_ID = "fallback"


@dataclass(frozen=True)
class GenerationResult:
    """
    Gateway answer.

    Attributes:
        content: Response text (the apology when every provider failed)
        model_used: Provider id that answered, or "fallback"
        metadata: Token counts and processing time in ms
        attempts: Provider ids tried, in order
    """

    content: str
    model_used: str
    metadata: dict[str, Any] = field(default_factory=dict)
    attempts: list[str] = field(default_factory=list)


class ModelGateway:
    """
    Provider selection, timeout and fallback policy.

    Args:
        providers: Lookup table keyed by model identifier
        default_model: Used when no hint (or an unknown hint) is given
        fallback_model: Preferred fallback, when registered and different from the primary
        timeout_seconds: Upper bound for each provider call
        apology_message: Returned when both attempts fail
    """

    def __init__(
        self,
        providers: dict[str, ModelProvider],
        default_model: str,
        apology_message: str,
        fallback_model: str | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._providers = dict(providers)
        self.default_model = default_model
        self.fallback_model = fallback_model
        self.timeout_seconds = timeout_seconds
        self.apology_message = apology_message

    @classmethod
    def from_settings(cls, llm: LLMSettings, chat: ChatSettings) -> "ModelGateway":
        return cls(
            providers=build_providers(llm),
            default_model=llm.default_model,
            fallback_model=llm.fallback_model,
            timeout_seconds=llm.request_timeout_seconds,
            apology_message=chat.apology_message,
        )

    @property
    def models(self) -> list[str]:
        return list(self._providers)

    def select_primary(self, model_hint: str | None) -> str:
        """Hint if registered, else the configured default."""
        if model_hint:
            if model_hint in self._providers:
                return model_hint
            logger.warning(
                "Unknown model hint, using default",
                extra={"model_hint": model_hint, "default_model": self.default_model},
            )
        return self.default_model

    def select_fallback(self, primary: str) -> str | None:
        """A registered model different from the primary, or None."""
        if self.fallback_model and self.fallback_model != primary and self.fallback_model in self._providers:
            return self.fallback_model
        for model_id in self._providers:
            if model_id != primary:
                return model_id
        return None

    async def _call(self, model_id: str, prompt: str, history: list[dict[str, str]]) -> ProviderReply:
        provider = self._providers.get(model_id)
        if provider is None:
            raise ModelProviderError("Model not registered", provider=model_id)
        try:
            return await asyncio.wait_for(
                provider.generate(prompt, history),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ModelTimeoutError(
                f"No response within {self.timeout_seconds}s",
                provider=model_id,
            ) from e
        except ModelProviderError:
            raise
        except Exception as e:
            raise ModelProviderError(f"{type(e).__name__}: {e}", provider=model_id) from e

    async def generate(
        self,
        prompt: str,
        history: list[dict[str, str]] | None = None,
        model_hint: str | None = None,
    ) -> GenerationResult:
        """
        Generate a response with at most one fallback.

        Args:
            prompt: Composed prompt
            history: Role/content pairs, oldest first
            model_hint: Preferred model from the context rule

        Returns:
            GenerationResult; model_used is "fallback" when both attempts failed
        """
        history = history or []
        started = time.perf_counter()
        primary = self.select_primary(model_hint)
        candidates = [primary]
        fallback = self.select_fallback(primary)
        if fallback is not None:
            candidates.append(fallback)

        attempts: list[str] = []
        for model_id in candidates:
            attempts.append(model_id)
            try:
                reply = await self._call(model_id, prompt, history)
            except ModelProviderError as e:
                logger.warning(
                    f"Model call failed: {e}",
                    extra={"model": model_id, "attempt": len(attempts)},
                )
                continue

            metadata: dict[str, Any] = {
                "processing_time_ms": int((time.perf_counter() - started) * 1000),
            }
            if reply.input_tokens is not None or reply.output_tokens is not None:
                metadata["input_tokens"] = reply.input_tokens
                metadata["output_tokens"] = reply.output_tokens
                metadata["token_count"] = (reply.input_tokens or 0) + (reply.output_tokens or 0)
            return GenerationResult(
                content=reply.content,
                model_used=model_id,
                metadata=metadata,
                attempts=attempts,
            )

        logger.error("All model providers failed", extra={"attempts": attempts})
        return GenerationResult(
            content=self.apology_message,
            model_used=FALLBACK_MODEL_ID,
            metadata={"processing_time_ms": int((time.perf_counter() - started) * 1000)},
            attempts=attempts,
        )
