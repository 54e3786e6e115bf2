"""Generative provider abstraction package."""

from kokoro.infrastructure.llm.provider import (
    StreamingProvider,
    LLMProviderError,
    RateLimitError,
    ContentFilterError,
)
from kokoro.infrastructure.llm.template_provider import TemplateResponseProvider
from kokoro.infrastructure.llm.provider_chain import ProviderChain
from kokoro.infrastructure.llm.provider_factory import (
    ProviderType,
    build_provider_chain,
    create_provider,
)

__all__ = [
    # Base types
    "StreamingProvider",
    "LLMProviderError",
    "RateLimitError",
    "ContentFilterError",
    # Providers
    "TemplateResponseProvider",
    # Chain
    "ProviderChain",
    # Factory
    "ProviderType",
    "build_provider_chain",
    "create_provider",
]
