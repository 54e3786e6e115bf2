"""
Streaming Provider Interface

Contract between the provider chain and each generative vendor.

A provider is a source of text chunks for one prompt. It does not
retry, does not fall back and does not know about safety messages;
ordering, timeouts and fallback all belong to the ProviderChain.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from kokoro.services.prompt.prompt_builder import BuiltPrompt


class StreamingProvider(ABC):
    """
    A generative text source.

    Implementations yield only non-empty chunks and signal every
    failure, during setup or mid-stream, as LLMProviderError.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short stable name used in attempts, logs and metric labels."""

    @property
    @abstractmethod
    def default_model(self) -> str: ...

    @abstractmethod
    def is_configured(self) -> bool:
        """False when credentials are missing; the chain skips the provider."""

    @abstractmethod
    def stream_generate(self, prompt: BuiltPrompt) -> AsyncIterator[str]:
        """
        Stream the completion for a prompt.

        Raises:
            LLMProviderError: On any vendor failure
        """

    @abstractmethod
    async def health_check(self) -> bool: ...


class LLMProviderError(Exception):
    """
    A provider could not produce (or finish) its stream.

    Attributes:
        provider: provider_name of the failing provider
        is_retryable: The same request might succeed later
        original_error: Vendor exception, if any
    """

    def __init__(
        self,
        message: str,
        provider: str,
        is_retryable: bool = False,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.is_retryable = is_retryable
        self.original_error = original_error


class RateLimitError(LLMProviderError):
    """Vendor quota or rate limit hit."""

    def __init__(self, provider: str, retry_after_seconds: Optional[int] = None) -> None:
        super().__init__(f"{provider} rate limited", provider=provider, is_retryable=True)
        self.retry_after_seconds = retry_after_seconds


class ContentFilterError(LLMProviderError):
    """
    The vendor's own safety filter refused the prompt or cut the reply.

    Common with crisis conversations; the chain treats it like any
    other failure and the deterministic safety message is unaffected.
    """

    def __init__(self, provider: str, filter_reason: str = "") -> None:
        super().__init__(f"{provider} content filter: {filter_reason}", provider=provider)
        self.filter_reason = filter_reason


def vendor_error(provider: str, error: BaseException) -> LLMProviderError:
    """
    Map an SDK exception without a typed hierarchy onto our errors.

    Used where the vendor only exposes the failure kind in the message
    text (google-generativeai).
    """
    text = str(error).lower()
    if any(marker in text for marker in ("quota", "rate limit", "ratelimit", "rate_limit", "429")):
        return RateLimitError(provider, retry_after_seconds=60)
    if "safety" in text or "blocked" in text:
        return ContentFilterError(provider, filter_reason=str(error))
    return LLMProviderError(
        f"{provider} error: {error}",
        provider=provider,
        is_retryable=True,
        original_error=error,
    )
