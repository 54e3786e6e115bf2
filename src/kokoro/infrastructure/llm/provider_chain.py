"""
Provider Chain

Ordered fallback over streaming providers, ending in the local
template provider that cannot fail.

SAFETY-CRITICAL: The chain never emits text from two providers for
the same turn. A provider is only relayed once its first chunk has
arrived (the commit rule). Before that point any failure falls
through to the next provider with nothing sent; after it, a failure
is recorded as an interruption and closed off with a single
deterministic continuation line.

ARCHITECTURE: The chain is stateless between turns. Per-turn state
lives in the caller-supplied attempts list.
"""

import asyncio
import time
from typing import AsyncIterator, Optional, Sequence

from kokoro.config.logging_config import get_logger
from kokoro.domain.models.conversation import AttemptOutcome, ProviderAttempt
from kokoro.infrastructure.llm.provider import StreamingProvider
from kokoro.infrastructure.llm.template_provider import TemplateResponseProvider
from kokoro.infrastructure.metrics import (
    PROVIDER_FIRST_CHUNK_LATENCY,
    track_provider_attempt,
)
from kokoro.services.prompt.fallback_templates import (
    INTERRUPTION_CONTINUATION,
    Topic,
    detect_topic,
)
from kokoro.services.prompt.prompt_builder import BuiltPrompt

logger = get_logger(__name__)


class ProviderChain:
    """
    Streams a response from the first provider that can produce one.

    Usage:
        chain = ProviderChain([gemini, openai], TemplateResponseProvider())
        async for chunk in chain.stream_response(prompt, attempts=attempts):
            ...
    """

    def __init__(
        self,
        providers: Sequence[StreamingProvider],
        fallback: Optional[TemplateResponseProvider] = None,
        first_chunk_timeout_seconds: float = 15.0,
        chunk_timeout_seconds: float = 30.0,
    ) -> None:
        """
        Args:
            providers: Generative providers in priority order
            fallback: Local template provider used when all fail
            first_chunk_timeout_seconds: Bound on setup + first chunk
            chunk_timeout_seconds: Bound on each gap between later chunks
        """
        self._providers = list(providers)
        self._fallback = fallback or TemplateResponseProvider()
        self._first_chunk_timeout = first_chunk_timeout_seconds
        self._chunk_timeout = chunk_timeout_seconds

    @property
    def providers(self) -> list[StreamingProvider]:
        return list(self._providers)

    @property
    def fallback(self) -> TemplateResponseProvider:
        return self._fallback

    async def stream_response(
        self,
        prompt: BuiltPrompt,
        topic_hint: Optional[Topic] = None,
        attempts: Optional[list[ProviderAttempt]] = None,
    ) -> AsyncIterator[str]:
        """
        Stream response chunks for a prompt.

        Args:
            prompt: Built prompt
            topic_hint: Template topic if every provider fails
                (detected from the user message when omitted)
            attempts: List that receives one ProviderAttempt per provider tried

        Yields:
            Text chunks, in order, from exactly one source
        """
        if attempts is None:
            attempts = []

        for provider in self._providers:
            name = provider.provider_name

            if not provider.is_configured():
                self._record(attempts, name, AttemptOutcome.SKIPPED, "not configured")
                continue

            start = time.monotonic()
            stream = None
            try:
                # Plain-def providers may raise here, before any chunk
                stream = provider.stream_generate(prompt)
                first_chunk = await asyncio.wait_for(
                    stream.__anext__(),
                    timeout=self._first_chunk_timeout,
                )
            except StopAsyncIteration:
                await self._close(stream, name)
                self._record(attempts, name, AttemptOutcome.FAILURE, "empty stream", start)
                continue
            except asyncio.TimeoutError:
                await self._close(stream, name)
                self._record(attempts, name, AttemptOutcome.FAILURE, "first chunk timeout", start)
                continue
            except Exception as e:
                await self._close(stream, name)
                self._record(attempts, name, AttemptOutcome.FAILURE, self._reason(e), start)
                continue

            PROVIDER_FIRST_CHUNK_LATENCY.labels(provider=name).observe(time.monotonic() - start)
            logger.debug("Provider committed", provider=name, model=provider.default_model)

            # Committed: from here on this provider owns the turn
            try:
                yield first_chunk

                while True:
                    try:
                        chunk = await asyncio.wait_for(
                            stream.__anext__(),
                            timeout=self._chunk_timeout,
                        )
                    except StopAsyncIteration:
                        break
                    except Exception as e:
                        reason = "chunk timeout" if isinstance(e, asyncio.TimeoutError) else self._reason(e)
                        self._record(attempts, name, AttemptOutcome.INTERRUPTED, reason, start)
                        yield INTERRUPTION_CONTINUATION
                        return

                    yield chunk
            finally:
                await self._close(stream, name)

            self._record(attempts, name, AttemptOutcome.SUCCESS, "", start)
            return

        logger.warning(
            "All generative providers unavailable, using template response",
            attempted=[a.provider for a in attempts],
        )
        start = time.monotonic()
        async for chunk in self._fallback.stream_topic(topic_hint or detect_topic(prompt.user_message)):
            yield chunk
        self._record(attempts, self._fallback.provider_name, AttemptOutcome.SUCCESS, "", start)

    def _record(
        self,
        attempts: list[ProviderAttempt],
        provider: str,
        outcome: AttemptOutcome,
        reason: str,
        start: Optional[float] = None,
    ) -> None:
        latency_ms = int((time.monotonic() - start) * 1000) if start is not None else 0
        attempts.append(ProviderAttempt(
            provider=provider,
            outcome=outcome,
            reason=reason,
            latency_ms=latency_ms,
        ))
        track_provider_attempt(provider, outcome.value)

        if outcome in (AttemptOutcome.FAILURE, AttemptOutcome.INTERRUPTED):
            logger.warning(
                "Provider attempt failed",
                provider=provider,
                outcome=outcome.value,
                reason=reason,
                latency_ms=latency_ms,
            )
        else:
            logger.debug(
                "Provider attempt recorded",
                provider=provider,
                outcome=outcome.value,
                latency_ms=latency_ms,
            )

    @staticmethod
    def _reason(error: Exception) -> str:
        return f"{type(error).__name__}: {error}"

    @staticmethod
    async def _close(stream: Optional[AsyncIterator[str]], provider: str) -> None:
        aclose = getattr(stream, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception as e:
            logger.debug("Provider stream close failed", provider=provider, error=str(e))
