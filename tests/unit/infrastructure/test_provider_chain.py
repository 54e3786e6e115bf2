"""
Unit Tests for Provider Chain

Tests ordered fallback, the first-chunk commit rule and mid-stream
interruption handling.
"""

import pytest

from kokoro.domain.models.conversation import AttemptOutcome
from kokoro.infrastructure.llm.provider import LLMProviderError
from kokoro.infrastructure.llm.provider_chain import ProviderChain
from kokoro.services.prompt.fallback_templates import (
    INTERRUPTION_CONTINUATION,
    TEMPLATES,
    Topic,
)
from kokoro.services.prompt.prompt_builder import BuiltPrompt


@pytest.fixture
def prompt() -> BuiltPrompt:
    return BuiltPrompt(system_prompt="SYSTEM", user_message="I can't sleep at all")


async def collect(chain: ProviderChain, prompt: BuiltPrompt, attempts: list, topic=None) -> list[str]:
    return [chunk async for chunk in chain.stream_response(prompt, topic, attempts)]


class TestProviderSelection:
    """Tests for choosing which provider answers."""

    @pytest.mark.asyncio
    async def test_first_provider_answers(self, make_provider, template, prompt) -> None:
        first = make_provider("gemini", ["Hello", " there"])
        second = make_provider("openai", ["unused"])
        chain = ProviderChain([first, second], template)
        attempts: list = []

        chunks = await collect(chain, prompt, attempts)

        assert chunks == ["Hello", " there"]
        assert second.calls == 0
        assert [(a.provider, a.outcome) for a in attempts] == [("gemini", AttemptOutcome.SUCCESS)]
        assert first.closed is True

    @pytest.mark.asyncio
    async def test_skips_unconfigured(self, make_provider, template, prompt) -> None:
        first = make_provider("gemini", ["never"], configured=False)
        second = make_provider("openai", ["Hi"])
        chain = ProviderChain([first, second], template)
        attempts: list = []

        assert await collect(chain, prompt, attempts) == ["Hi"]
        assert first.calls == 0
        assert attempts[0].outcome == AttemptOutcome.SKIPPED
        assert attempts[0].reason == "not configured"

    @pytest.mark.asyncio
    async def test_falls_through_on_setup_failure(self, make_provider, template, prompt) -> None:
        """Test that a failure before the first chunk sends nothing and tries the next provider."""
        first = make_provider("gemini", ["never"], fail_at=0)
        second = make_provider("openai", ["From", " openai"])
        chain = ProviderChain([first, second], template)
        attempts: list = []

        chunks = await collect(chain, prompt, attempts)

        assert chunks == ["From", " openai"]
        assert first.yielded == 0
        assert attempts[0].outcome == AttemptOutcome.FAILURE
        assert attempts[0].reason.startswith("LLMProviderError")
        assert attempts[1].outcome == AttemptOutcome.SUCCESS

    @pytest.mark.asyncio
    async def test_falls_through_when_stream_setup_raises(self, make_provider, template, prompt) -> None:
        """Test that a provider raising before returning a stream is skipped like any setup failure."""
        first = make_provider("gemini", ["never"])
        second = make_provider("openai", ["From openai"])

        def refuse(prompt):
            raise LLMProviderError("quota exhausted", provider="gemini")

        first.stream_generate = refuse
        chain = ProviderChain([first, second], template)
        attempts: list = []

        chunks = await collect(chain, prompt, attempts)

        assert chunks == ["From openai"]
        assert second.calls == 1
        assert [(a.provider, a.outcome) for a in attempts] == [
            ("gemini", AttemptOutcome.FAILURE),
            ("openai", AttemptOutcome.SUCCESS),
        ]
        assert "quota exhausted" in attempts[0].reason

    @pytest.mark.asyncio
    async def test_falls_through_on_empty_stream(self, make_provider, template, prompt) -> None:
        first = make_provider("gemini", [])
        second = make_provider("openai", ["ok"])
        chain = ProviderChain([first, second], template)
        attempts: list = []

        assert await collect(chain, prompt, attempts) == ["ok"]
        assert attempts[0].reason == "empty stream"

    @pytest.mark.asyncio
    async def test_falls_through_on_first_chunk_timeout(self, make_provider, template, prompt) -> None:
        first = make_provider("gemini", ["late"], delay=0.5)
        second = make_provider("openai", ["on time"])
        chain = ProviderChain([first, second], template, first_chunk_timeout_seconds=0.05)
        attempts: list = []

        assert await collect(chain, prompt, attempts) == ["on time"]
        assert attempts[0].reason == "first chunk timeout"
        assert first.closed is True

    @pytest.mark.asyncio
    async def test_all_fail_uses_template(self, make_provider, template, prompt) -> None:
        chain = ProviderChain(
            [make_provider("gemini", fail_at=0), make_provider("openai", fail_at=0)],
            template,
        )
        attempts: list = []

        text = "".join(await collect(chain, prompt, attempts))

        assert text == TEMPLATES[Topic.SLEEP] + "\n"
        assert [a.provider for a in attempts] == ["gemini", "openai", "template"]
        assert attempts[-1].outcome == AttemptOutcome.SUCCESS

    @pytest.mark.asyncio
    async def test_topic_hint_overrides_detection(self, template, prompt) -> None:
        chain = ProviderChain([], template)
        text = "".join(await collect(chain, prompt, [], topic=Topic.BONDING))
        assert text == TEMPLATES[Topic.BONDING] + "\n"

    @pytest.mark.asyncio
    async def test_prompt_passed_through(self, make_provider, template, prompt) -> None:
        provider = make_provider("openai", ["ok"])
        await collect(ProviderChain([provider], template), prompt, [])
        assert provider.prompts == [prompt]


class TestInterruption:
    """Tests for failures after the first chunk has been relayed."""

    @pytest.mark.asyncio
    async def test_mid_stream_failure_ends_with_continuation(self, make_provider, template, prompt) -> None:
        """Test that a committed provider is never replaced by another source."""
        first = make_provider("gemini", ["Part one.", " Part two.", " never"], fail_at=2)
        second = make_provider("openai", ["should not appear"])
        chain = ProviderChain([first, second], template)
        attempts: list = []

        chunks = await collect(chain, prompt, attempts)

        assert chunks == ["Part one.", " Part two.", INTERRUPTION_CONTINUATION]
        assert second.calls == 0
        assert len(attempts) == 1
        assert attempts[0].outcome == AttemptOutcome.INTERRUPTED

    @pytest.mark.asyncio
    async def test_chunk_gap_timeout(self, make_provider, template, prompt) -> None:
        provider = make_provider("gemini", ["a", "b"], delay=0.2)
        chain = ProviderChain(
            [provider],
            template,
            first_chunk_timeout_seconds=1.0,
            chunk_timeout_seconds=0.05,
        )
        attempts: list = []

        chunks = await collect(chain, prompt, attempts)

        assert chunks == ["a", INTERRUPTION_CONTINUATION]
        assert attempts[0].reason == "chunk timeout"

    @pytest.mark.asyncio
    async def test_consumer_close_closes_provider(self, make_provider, template, prompt) -> None:
        provider = make_provider("gemini", ["a", "b", "c"])
        chain = ProviderChain([provider], template)

        stream = chain.stream_response(prompt, attempts=[])
        assert await stream.__anext__() == "a"
        await stream.aclose()

        assert provider.closed is True
        assert provider.yielded == 1
