"""
Provider Factory

Builds streaming providers and the provider chain from configuration.

CONFIGURATION:
    KOKORO_CHAT_PROVIDER_ORDER='["gemini","openai"]'
"""

from enum import StrEnum
from typing import Optional

from kokoro.config import Settings, get_settings
from kokoro.config.logging_config import get_logger
from kokoro.infrastructure.llm.provider import StreamingProvider
from kokoro.infrastructure.llm.provider_chain import ProviderChain
from kokoro.infrastructure.llm.template_provider import TemplateResponseProvider

logger = get_logger(__name__)


class ProviderType(StrEnum):
    """Supported generative provider types."""

    OPENAI = "openai"
    GEMINI = "gemini"


def create_provider(provider_type: ProviderType) -> StreamingProvider:
    """Create provider instance by type."""
    if provider_type == ProviderType.OPENAI:
        from kokoro.infrastructure.llm.openai_provider import OpenAIStreamingProvider
        return OpenAIStreamingProvider()

    elif provider_type == ProviderType.GEMINI:
        from kokoro.infrastructure.llm.gemini_provider import GeminiStreamingProvider
        return GeminiStreamingProvider()

    else:
        raise ValueError(f"Unknown provider type: {provider_type}")


def build_provider_chain(settings: Optional[Settings] = None) -> ProviderChain:
    """
    Build the provider chain in configured order.

    Unconfigured providers stay in the chain; the chain records
    them as skipped on every turn, which keeps the attempt log honest.
    """
    settings = settings or get_settings()
    chat = settings.chat

    providers = [create_provider(ProviderType(name)) for name in chat.provider_order]

    logger.info(
        "Provider chain initialized",
        order=[p.provider_name for p in providers],
        configured=[p.provider_name for p in providers if p.is_configured()],
    )

    return ProviderChain(
        providers,
        fallback=TemplateResponseProvider(chat.template_chunk_delay_seconds),
        first_chunk_timeout_seconds=chat.first_chunk_timeout_seconds,
        chunk_timeout_seconds=chat.chunk_timeout_seconds,
    )
