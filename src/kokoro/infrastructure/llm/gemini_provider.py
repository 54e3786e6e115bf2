"""
Google Gemini Streaming Provider

First choice in the default chain (gemini-2.0-flash). Gemini takes
the single-string prompt form; there is no separate system role.
"""

import asyncio
from typing import AsyncIterator, Optional

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

from kokoro.config import get_settings
from kokoro.config.logging_config import get_logger
from kokoro.infrastructure.llm.provider import (
    ContentFilterError,
    LLMProviderError,
    StreamingProvider,
    vendor_error,
)
from kokoro.services.prompt.prompt_builder import BuiltPrompt

logger = get_logger(__name__)

PLACEHOLDER_KEY = "CHANGE_ME"


class GeminiStreamingProvider(StreamingProvider):
    """
    Gemini provider over google-generativeai's async streaming API.

    Usage:
        provider = GeminiStreamingProvider()
        async for chunk in provider.stream_generate(prompt):
            ...
    """

    # Dangerous-content is only blocked at HIGH: mothers describing
    # intrusive thoughts must still get a supportive reply.
    SAFETY_SETTINGS = [
        {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
        {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_ONLY_HIGH"},
    ]

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.gemini.api_key.get_secret_value()
        self._model_name = model or settings.gemini.model

        # genai keeps the key in module state, so only configure a real one
        self._configured = bool(self._api_key) and self._api_key != PLACEHOLDER_KEY
        if self._configured:
            genai.configure(api_key=self._api_key)

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return self._model_name

    def is_configured(self) -> bool:
        return self._configured

    async def stream_generate(self, prompt: BuiltPrompt) -> AsyncIterator[str]:
        if not self._configured:
            raise LLMProviderError("Gemini API key not configured", provider=self.provider_name)

        model = genai.GenerativeModel(model_name=self._model_name, safety_settings=self.SAFETY_SETTINGS)

        try:
            response = await model.generate_content_async(
                prompt.full_prompt,
                generation_config=GenerationConfig(
                    max_output_tokens=prompt.max_tokens,
                    temperature=prompt.temperature,
                ),
                stream=True,
            )

            async for chunk in response:
                feedback = getattr(chunk, "prompt_feedback", None)
                if feedback is not None and feedback.block_reason:
                    raise ContentFilterError(self.provider_name, filter_reason=str(feedback.block_reason))

                try:
                    text = chunk.text
                except ValueError:
                    # finish-only chunk with no text parts
                    continue
                if text:
                    yield text

        except LLMProviderError:
            raise
        except Exception as e:
            error = vendor_error(self.provider_name, e)
            logger.warning("Gemini stream failed", error_type=type(error).__name__, error=str(e))
            raise error from e

    async def health_check(self) -> bool:
        if not self._configured:
            return False
        try:
            # list_models is blocking
            await asyncio.to_thread(lambda: next(iter(genai.list_models()), None))
            return True
        except Exception as e:
            logger.warning("Gemini health check failed", error=str(e))
            return False
