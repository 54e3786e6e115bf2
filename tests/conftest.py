"""Tests configuration and fixtures."""

import asyncio
from typing import AsyncIterator, Optional, Sequence

import pytest

from kokoro.config import Settings
from kokoro.infrastructure.llm.provider import LLMProviderError, StreamingProvider
from kokoro.infrastructure.llm.provider_chain import ProviderChain
from kokoro.infrastructure.llm.template_provider import TemplateResponseProvider
from kokoro.infrastructure.memory.memu_client import (
    CategorySummary,
    MemoryProviderError,
    RetrievedItem,
    RetrieveResult,
)
from kokoro.infrastructure.tasks.background_runner import BackgroundTaskRunner
from kokoro.services.memory.archiver import ConversationArchiver
from kokoro.services.memory.context_gateway import ContextEnrichmentGateway
from kokoro.services.orchestration.stream_composer import StreamComposer
from kokoro.services.prompt.prompt_builder import BuiltPrompt


# =============================================================================
# TEST DOUBLES
# =============================================================================

class ScriptedProvider(StreamingProvider):
    """
    Provider double that streams a fixed script.

    Args:
        name: provider_name to report
        chunks: Chunks to yield, in order
        fail_at: Raise LLMProviderError before yielding chunk N (0 = setup failure)
        configured: is_configured() result
        delay: Seconds to sleep before each chunk
    """

    def __init__(
        self,
        name: str,
        chunks: Sequence[str] = (),
        fail_at: Optional[int] = None,
        configured: bool = True,
        delay: float = 0.0,
    ) -> None:
        self._name = name
        self._chunks = list(chunks)
        self._fail_at = fail_at
        self._configured = configured
        self._delay = delay
        self.calls = 0
        self.prompts: list[BuiltPrompt] = []
        self.closed = False
        self.yielded = 0

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return f"{self._name}-test"

    def is_configured(self) -> bool:
        return self._configured

    async def health_check(self) -> bool:
        return self._configured

    async def stream_generate(self, prompt: BuiltPrompt) -> AsyncIterator[str]:
        self.calls += 1
        self.prompts.append(prompt)
        try:
            for index, chunk in enumerate(self._chunks):
                if self._fail_at is not None and index == self._fail_at:
                    raise LLMProviderError(f"{self._name} failed", provider=self._name)
                if self._delay:
                    await asyncio.sleep(self._delay)
                self.yielded += 1
                yield chunk
            if self._fail_at is not None and self._fail_at >= len(self._chunks):
                raise LLMProviderError(f"{self._name} failed", provider=self._name)
        finally:
            self.closed = True


class FakeMemoryClient:
    """In-memory stand-in for MemUClient."""

    def __init__(
        self,
        result: Optional[RetrieveResult] = None,
        fail_retrieve: bool = False,
        fail_store: int = 0,
        configured: bool = True,
    ) -> None:
        self.result = result or RetrieveResult()
        self.fail_retrieve = fail_retrieve
        self.fail_store = fail_store
        self.configured = configured
        self.retrieve_calls: list[tuple] = []
        self.stored_conversations: list[dict] = []
        self.screenings: list[dict] = []
        self.clinical_flags: list[dict] = []
        self.phq2_results: list[dict] = []

    def is_configured(self) -> bool:
        return self.configured

    async def retrieve(self, query: str, user_id: str, method: str = "rag", limit: int = 5) -> RetrieveResult:
        self.retrieve_calls.append((query, user_id, method, limit))
        if self.fail_retrieve:
            raise MemoryProviderError("memU unavailable", status_code=503)
        return self.result

    async def store_conversation(self, user_id, user_message, ai_response, crisis_level) -> dict:
        if self.fail_store > 0:
            self.fail_store -= 1
            raise MemoryProviderError("memU unavailable", status_code=503)
        self.stored_conversations.append({
            "user_id": user_id,
            "user_message": user_message,
            "ai_response": ai_response,
            "crisis_level": crisis_level,
        })
        return {"success": True}

    async def store_screening_result(self, user_id, total_score, item10_score, crisis_level, timestamp) -> dict:
        if self.fail_store:
            raise MemoryProviderError("memU unavailable")
        self.screenings.append({
            "user_id": user_id,
            "total_score": total_score,
            "item10_score": item10_score,
            "crisis_level": crisis_level,
        })
        return {"success": True}

    async def store_clinical_flag(self, user_id, total_score, crisis_level, concern_areas, timestamp) -> dict:
        self.clinical_flags.append({
            "user_id": user_id,
            "total_score": total_score,
            "concern_areas": concern_areas,
        })
        return {"success": True}

    async def store_phq2_result(self, user_id, answers, total, suggests_epds, timestamp) -> dict:
        if self.fail_store:
            raise MemoryProviderError("memU unavailable")
        self.phq2_results.append({"user_id": user_id, "total": total, "suggests_epds": suggests_epds})
        return {"success": True}

    async def close(self) -> None:
        pass


def build_composer(
    providers: Sequence[StreamingProvider],
    memory: Optional[FakeMemoryClient] = None,
    runner: Optional[BackgroundTaskRunner] = None,
    first_chunk_timeout: float = 1.0,
    chunk_timeout: float = 1.0,
) -> StreamComposer:
    """Composer wired to test doubles with no pacing delays."""
    memory = memory or FakeMemoryClient()
    fallback = TemplateResponseProvider(chunk_delay_seconds=0)
    chain = ProviderChain(
        providers,
        fallback=fallback,
        first_chunk_timeout_seconds=first_chunk_timeout,
        chunk_timeout_seconds=chunk_timeout,
    )
    return StreamComposer(
        provider_chain=chain,
        context_gateway=ContextEnrichmentGateway(memory, timeout_seconds=1.0),
        archiver=ConversationArchiver(memory, max_attempts=2, retry_wait_seconds=0),
        task_runner=runner or BackgroundTaskRunner(),
        fallback=fallback,
    )


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with mock values."""
    return Settings(
        env="development",
        debug=True,
    )


@pytest.fixture
def memory() -> FakeMemoryClient:
    return FakeMemoryClient(
        result=RetrieveResult(
            items=[RetrievedItem(summary="Baby is 6 weeks old and feeds every 3 hours")],
            categories=[CategorySummary(name="mood_patterns", summary="Low mood in the evenings")],
        )
    )


@pytest.fixture
def runner() -> BackgroundTaskRunner:
    return BackgroundTaskRunner()


@pytest.fixture
def template() -> TemplateResponseProvider:
    return TemplateResponseProvider(chunk_delay_seconds=0)


@pytest.fixture
def make_provider() -> type[ScriptedProvider]:
    """Factory for scripted provider doubles."""
    return ScriptedProvider


@pytest.fixture
def make_memory() -> type[FakeMemoryClient]:
    """Factory for in-memory memU doubles."""
    return FakeMemoryClient


@pytest.fixture
def make_composer():
    """Factory for composers wired to test doubles."""
    return build_composer
