"""Interchangeable text-completion backends built on pydantic-ai.

Every backend satisfies ``CompletionProvider.complete`` and returns the raw
completion text. Provider-specific imports are kept lazy so a missing SDK or
credential only matters for the backend that is actually selected.
``get_provider`` is the only place that branches on the provider name.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from pydantic_ai import Agent
from pydantic_ai.settings import ModelSettings

from app.core.config import AISettings
from app.core.exceptions import ProviderConfigError
from app.core.logging import get_logger

logger = get_logger(__name__)

CEREBRAS_BASE_URL = "https://api.cerebras.ai/v1"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class CompletionProvider(ABC):
    name: str = "base"

    @abstractmethod
    async def complete(self, system_prompt: str, user_text: str, model: str) -> str:
        """Return a single completion for ``user_text`` under ``system_prompt``."""


class PydanticAIProvider(CompletionProvider):
    """Runs one plain-text pydantic-ai agent call per completion."""

    api_key_field: str = ""

    def __init__(self, ai: AISettings):
        self.ai = ai

    def _api_key(self) -> str:
        key: Optional[str] = getattr(self.ai, self.api_key_field, None)
        if not key:
            raise ProviderConfigError(
                f"{self.name} API key not configured. "
                f"Set {self.api_key_field.upper()} in your environment."
            )
        return key

    @abstractmethod
    def _build_model(self, model_name: str):
        """Build the pydantic-ai Model for this backend (lazy import)."""

    def _model_settings(self) -> ModelSettings:
        model_settings = ModelSettings(
            temperature=self.ai.temperature,
            max_tokens=self.ai.max_tokens,
        )
        if self.ai.timeout_seconds is not None:
            model_settings["timeout"] = self.ai.timeout_seconds
        return model_settings

    async def complete(self, system_prompt: str, user_text: str, model: str) -> str:
        agent: Agent[None, str] = Agent[None, str](
            model=self._build_model(model),
            output_type=str,
            system_prompt=system_prompt,
            model_settings=self._model_settings(),
        )
        logger.info("[%s] Sending request, model=%s", self.name, model)
        res = await agent.run(user_text)
        return res.output or ""


class GroqCompletionProvider(PydanticAIProvider):
    name = "groq"
    api_key_field = "groq_api_key"

    def _build_model(self, model_name: str):
        from pydantic_ai.models.groq import GroqModel
        from pydantic_ai.providers.groq import GroqProvider

        return GroqModel(model_name, provider=GroqProvider(api_key=self._api_key()))


class CerebrasCompletionProvider(PydanticAIProvider):
    """Cerebras through its OpenAI-compatible endpoint."""

    name = "cerebras"
    api_key_field = "cerebras_api_key"

    def _build_model(self, model_name: str):
        from pydantic_ai.models.openai import OpenAIChatModel
        from pydantic_ai.providers.openai import OpenAIProvider

        provider = OpenAIProvider(api_key=self._api_key(), base_url=CEREBRAS_BASE_URL)
        return OpenAIChatModel(model_name, provider=provider)


class OpenRouterCompletionProvider(PydanticAIProvider):
    name = "openrouter"
    api_key_field = "openrouter_api_key"

    def _build_model(self, model_name: str):
        from pydantic_ai.models.openai import OpenAIChatModel
        from pydantic_ai.providers.openai import OpenAIProvider

        provider = OpenAIProvider(
            api_key=self._api_key(), base_url=OPENROUTER_BASE_URL
        )
        return OpenAIChatModel(model_name, provider=provider)


class GoogleCompletionProvider(PydanticAIProvider):
    name = "google"
    api_key_field = "gemini_api_key"

    def _build_model(self, model_name: str):
        from pydantic_ai.models.google import GoogleModel
        from pydantic_ai.providers.google import GoogleProvider

        return GoogleModel(model_name, provider=GoogleProvider(api_key=self._api_key()))


PROVIDERS: dict[str, type[PydanticAIProvider]] = {
    "groq": GroqCompletionProvider,
    "cerebras": CerebrasCompletionProvider,
    "openrouter": OpenRouterCompletionProvider,
    "google": GoogleCompletionProvider,
}


def get_provider(ai: AISettings) -> CompletionProvider:
    """Return the backend named by ``AI_PROVIDER``."""
    name = (ai.provider or "groq").lower()
    cls = PROVIDERS.get(name)
    if cls is None:
        raise ProviderConfigError(f"Unknown AI provider: {ai.provider}")
    logger.info("AI provider selected: %s, model: %s", name, ai.model)
    return cls(ai)


__all__ = [
    "CompletionProvider",
    "PydanticAIProvider",
    "GroqCompletionProvider",
    "CerebrasCompletionProvider",
    "OpenRouterCompletionProvider",
    "GoogleCompletionProvider",
    "PROVIDERS",
    "get_provider",
]
