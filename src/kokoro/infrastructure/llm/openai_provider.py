"""
OpenAI Streaming Provider

Chat Completions with stream=True (gpt-4o-mini by default). Uses
the system/user message form of the prompt.
"""

from typing import AsyncIterator, Optional

from openai import APIError, AsyncOpenAI
from openai import RateLimitError as OpenAIRateLimitError

from kokoro.config import get_settings
from kokoro.config.logging_config import get_logger
from kokoro.infrastructure.llm.provider import (
    ContentFilterError,
    LLMProviderError,
    RateLimitError,
    StreamingProvider,
)
from kokoro.services.prompt.prompt_builder import BuiltPrompt

logger = get_logger(__name__)

PLACEHOLDER_KEY = "sk-CHANGE_ME"


class OpenAIStreamingProvider(StreamingProvider):
    """
    OpenAI provider over AsyncOpenAI.

    Args:
        api_key: Defaults to KOKORO_OPENAI_API_KEY
        model: Defaults to KOKORO_OPENAI_MODEL
        max_tokens: Used when the prompt carries none
        temperature: Unused when the prompt sets one
        client: Pre-built client, mainly for tests
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        settings = get_settings().openai
        self._api_key = api_key or settings.api_key.get_secret_value()
        self._model = model or settings.model
        self._max_tokens = max_tokens or settings.max_tokens
        self._temperature = temperature if temperature is not None else settings.temperature
        self._client = client

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return self._model

    def is_configured(self) -> bool:
        if self._client is not None:
            return True
        return bool(self._api_key) and self._api_key != PLACEHOLDER_KEY

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def stream_generate(self, prompt: BuiltPrompt) -> AsyncIterator[str]:
        if not self.is_configured():
            raise LLMProviderError("OpenAI API key not configured", provider=self.provider_name)

        try:
            stream = await self._get_client().chat.completions.create(
                model=self._model,
                messages=prompt.to_messages(),
                max_tokens=prompt.max_tokens or self._max_tokens,
                temperature=prompt.temperature if prompt.temperature is not None else self._temperature,
                stream=True,
            )

            async for event in stream:
                if not event.choices:
                    continue
                choice = event.choices[0]

                if choice.finish_reason == "content_filter":
                    raise ContentFilterError(self.provider_name, "finish_reason=content_filter")

                text = choice.delta.content if choice.delta else None
                if text:
                    yield text

        except LLMProviderError:
            raise
        except OpenAIRateLimitError as e:
            logger.warning("OpenAI rate limit hit", error=str(e))
            raise RateLimitError(self.provider_name, retry_after_seconds=60) from e
        except APIError as e:
            logger.warning("OpenAI API error", error_type=type(e).__name__, error=str(e))
            raise LLMProviderError(
                f"OpenAI API error: {e}",
                provider=self.provider_name,
                is_retryable=True,
                original_error=e,
            ) from e
        except Exception as e:
            logger.error("Unexpected OpenAI error", error_type=type(e).__name__, error=str(e))
            raise LLMProviderError(
                f"Unexpected OpenAI error: {e}",
                provider=self.provider_name,
                original_error=e,
            ) from e

    async def health_check(self) -> bool:
        if not self.is_configured():
            return False
        try:
            await self._get_client().models.list()
            return True
        except Exception as e:
            logger.warning("OpenAI health check failed", error=str(e))
            return False
