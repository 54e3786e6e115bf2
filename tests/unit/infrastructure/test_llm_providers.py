"""
Unit Tests for Streaming LLM Providers

Provider SDK clients are replaced with mocks; no network calls.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from kokoro.config.settings import ChatSettings, Settings
from kokoro.infrastructure.llm import gemini_provider
from kokoro.infrastructure.llm.gemini_provider import GeminiStreamingProvider
from kokoro.infrastructure.llm.openai_provider import OpenAIStreamingProvider
from kokoro.infrastructure.llm.provider import ContentFilterError, LLMProviderError, RateLimitError
from kokoro.infrastructure.llm.provider_factory import ProviderType, build_provider_chain, create_provider
from kokoro.services.prompt.prompt_builder import BuiltPrompt


@pytest.fixture
def prompt() -> BuiltPrompt:
    return BuiltPrompt(system_prompt="SYSTEM", user_message="hello", max_tokens=256, temperature=0.3)


async def aiter_of(items):
    for item in items:
        yield item


def openai_chunk(content=None, finish_reason=None):
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=SimpleNamespace(content=content), finish_reason=finish_reason)]
    )


class GeminiChunk:
    """Mimics a streamed GenerateContentResponse chunk."""

    def __init__(self, text=None, block_reason=None) -> None:
        self._text = text
        self.prompt_feedback = SimpleNamespace(block_reason=block_reason) if block_reason else None

    @property
    def text(self) -> str:
        if self._text is None:
            raise ValueError("chunk has no text parts")
        return self._text


def gemini_chunk(text=None, block_reason=None, text_error: bool = False) -> GeminiChunk:
    return GeminiChunk(None if text_error else text, block_reason)


class TestOpenAIStreamingProvider:
    """Tests for OpenAI chunk relay and error mapping."""

    def make_provider(self, create: AsyncMock) -> OpenAIStreamingProvider:
        client = MagicMock()
        client.chat.completions.create = create
        return OpenAIStreamingProvider(api_key="sk-test", model="gpt-test", client=client)

    @pytest.mark.asyncio
    async def test_streams_content(self, prompt: BuiltPrompt) -> None:
        create = AsyncMock(return_value=aiter_of([
            openai_chunk("Hel"),
            SimpleNamespace(choices=[]),
            openai_chunk(None),
            openai_chunk("lo", finish_reason="stop"),
        ]))
        provider = self.make_provider(create)

        chunks = [c async for c in provider.stream_generate(prompt)]

        assert chunks == ["Hel", "lo"]
        kwargs = create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["model"] == "gpt-test"
        assert kwargs["max_tokens"] == 256
        assert kwargs["messages"] == prompt.to_messages()

    @pytest.mark.asyncio
    async def test_content_filter(self, prompt: BuiltPrompt) -> None:
        create = AsyncMock(return_value=aiter_of([openai_chunk(None, finish_reason="content_filter")]))
        provider = self.make_provider(create)

        with pytest.raises(ContentFilterError):
            async for _ in provider.stream_generate(prompt):
                pass

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, prompt: BuiltPrompt) -> None:
        provider = self.make_provider(AsyncMock(side_effect=ConnectionError("reset")))

        with pytest.raises(LLMProviderError) as exc_info:
            async for _ in provider.stream_generate(prompt):
                pass
        assert exc_info.value.provider == "openai"
        assert isinstance(exc_info.value.original_error, ConnectionError)

    @pytest.mark.asyncio
    async def test_unconfigured(self, prompt: BuiltPrompt) -> None:
        provider = OpenAIStreamingProvider(api_key="sk-CHANGE_ME")
        assert provider.is_configured() is False

        with pytest.raises(LLMProviderError, match="not configured"):
            async for _ in provider.stream_generate(prompt):
                pass


class TestGeminiStreamingProvider:
    """Tests for Gemini chunk relay and error mapping."""

    @pytest.fixture
    def model(self, monkeypatch) -> MagicMock:
        instance = MagicMock()
        monkeypatch.setattr(gemini_provider.genai, "configure", MagicMock())
        monkeypatch.setattr(gemini_provider.genai, "GenerativeModel", MagicMock(return_value=instance))
        return instance

    @pytest.mark.asyncio
    async def test_streams_text_and_skips_empty_parts(self, model: MagicMock, prompt: BuiltPrompt) -> None:
        model.generate_content_async = AsyncMock(return_value=aiter_of([
            gemini_chunk("Hi"),
            gemini_chunk(text_error=True),
            gemini_chunk(" there"),
        ]))
        provider = GeminiStreamingProvider(api_key="test-key", model="gemini-test")

        chunks = [c async for c in provider.stream_generate(prompt)]

        assert chunks == ["Hi", " there"]
        args, kwargs = model.generate_content_async.call_args
        assert args[0] == prompt.full_prompt
        assert kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_blocked_prompt(self, model: MagicMock, prompt: BuiltPrompt) -> None:
        model.generate_content_async = AsyncMock(return_value=aiter_of([gemini_chunk(block_reason="SAFETY")]))
        provider = GeminiStreamingProvider(api_key="test-key")

        with pytest.raises(ContentFilterError):
            async for _ in provider.stream_generate(prompt):
                pass

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message,error_type", [
        ("429 Quota exceeded", RateLimitError),
        ("Response blocked", ContentFilterError),
        ("500 internal", LLMProviderError),
    ])
    async def test_error_mapping(self, model: MagicMock, prompt: BuiltPrompt, message: str, error_type) -> None:
        model.generate_content_async = AsyncMock(side_effect=RuntimeError(message))
        provider = GeminiStreamingProvider(api_key="test-key")

        with pytest.raises(error_type):
            async for _ in provider.stream_generate(prompt):
                pass

    def test_placeholder_key_is_unconfigured(self, model: MagicMock) -> None:
        assert GeminiStreamingProvider(api_key="CHANGE_ME").is_configured() is False


class TestProviderFactory:

    def test_create_provider(self) -> None:
        assert create_provider(ProviderType.OPENAI).provider_name == "openai"

    def test_chain_follows_configured_order(self, monkeypatch) -> None:
        monkeypatch.setattr(gemini_provider.genai, "configure", MagicMock())
        settings = Settings(chat=ChatSettings(
            provider_order=["openai", "gemini"],
            first_chunk_timeout_seconds=2.0,
        ))

        chain = build_provider_chain(settings)

        assert [p.provider_name for p in chain.providers] == ["openai", "gemini"]
        assert chain.fallback.provider_name == "template"
