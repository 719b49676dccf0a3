"""Text-generation adapters (OpenAI chat completions, Anthropic messages)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from anthropic import AsyncAnthropic
from anthropic.types import TextBlock
from openai import AsyncOpenAI

from wikiscribe.config import ConfigurationError
from wikiscribe.pipeline_config import GenerationProvider

if TYPE_CHECKING:
    from wikiscribe.config import Settings


class GenerationError(RuntimeError):
    """Raised when a generation backend returns an unusable response."""


class TextGenerator(Protocol):
    async def generate(self, prompt: str, temperature: float, max_tokens: int) -> str: ...


class OpenAIGenerator:
    """Single-user-message chat completion."""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o") -> None:
        self._client = client
        self._model = model

    async def generate(self, prompt: str, temperature: float, max_tokens: int) -> str:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""


class AnthropicGenerator:
    """Claude messages API with a single user turn."""

    def __init__(self, client: AsyncAnthropic, model: str = "claude-sonnet-4-20250514") -> None:
        self._client = client
        self._model = model

    async def generate(self, prompt: str, temperature: float, max_tokens: int) -> str:
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )

        # Plain-text request: the first block should be a TextBlock
        block = response.content[0] if response.content else None
        if not isinstance(block, TextBlock):
            raise GenerationError(f"Expected TextBlock from Claude, got {type(block).__name__}")
        return block.text


def build_generator(settings: Settings) -> TextGenerator:
    """Create the configured generation backend.

    Raises:
        ConfigurationError: The selected provider has no API key.
    """
    provider = GenerationProvider(settings.generation_provider)

    if provider is GenerationProvider.ANTHROPIC:
        if not settings.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")
        return AnthropicGenerator(AsyncAnthropic(api_key=settings.anthropic_api_key), settings.llm_model)

    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY (or API_KEY) is not configured")
    return OpenAIGenerator(AsyncOpenAI(api_key=settings.openai_api_key), settings.llm_model)
