"""
Unit Tests for Context Enrichment Gateway

Tests context formatting and that enrichment never raises.
"""

import asyncio

import pytest

from kokoro.infrastructure.memory.memu_client import (
    CategorySummary,
    RetrievedItem,
    RetrieveResult,
)
from kokoro.services.memory.context_gateway import CONTEXT_LABEL, ContextEnrichmentGateway


class TestGetContext:
    """Tests for context retrieval."""

    @pytest.mark.asyncio
    async def test_formats_categories_and_items(self, memory) -> None:
        gateway = ContextEnrichmentGateway(memory)

        context = await gateway.get_context("user-1", "how do I sleep")

        assert context == (
            f"\n\n{CONTEXT_LABEL}\n"
            "- [mood_patterns]: Low mood in the evenings\n"
            "- Baby is 6 weeks old and feeds every 3 hours\n"
        )
        assert memory.retrieve_calls == [("how do I sleep", "user-1", "rag", 5)]

    @pytest.mark.asyncio
    async def test_empty_result(self, make_memory) -> None:
        gateway = ContextEnrichmentGateway(make_memory())
        assert await gateway.get_context("user-1", "hi") == ""

    @pytest.mark.asyncio
    async def test_provider_failure_returns_empty(self, make_memory) -> None:
        gateway = ContextEnrichmentGateway(make_memory(fail_retrieve=True))
        assert await gateway.get_context("user-1", "hi") == ""

    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self, make_memory) -> None:
        memory = make_memory()

        async def slow_retrieve(*args, **kwargs):
            await asyncio.sleep(1)
            return RetrieveResult()

        memory.retrieve = slow_retrieve
        gateway = ContextEnrichmentGateway(memory, timeout_seconds=0.01)

        assert await gateway.get_context("user-1", "hi") == ""

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_empty(self, make_memory) -> None:
        memory = make_memory()

        async def broken_retrieve(*args, **kwargs):
            raise KeyError("items")

        memory.retrieve = broken_retrieve
        gateway = ContextEnrichmentGateway(memory)

        assert await gateway.get_context("user-1", "hi") == ""


class TestFormatContext:
    """Tests for bounding the context block."""

    def test_caps_items_and_categories(self, make_memory) -> None:
        gateway = ContextEnrichmentGateway(make_memory(), max_items=2, max_categories=1)
        result = RetrieveResult(
            items=[RetrievedItem(summary=f"item {i}") for i in range(5)],
            categories=[CategorySummary(name=f"cat{i}", summary="s") for i in range(3)],
        )

        lines = gateway.format_context(result).strip().split("\n")

        assert lines == [CONTEXT_LABEL, "- [cat0]: s", "- item 0", "- item 1"]

    def test_truncates_and_collapses_whitespace(self, make_memory) -> None:
        gateway = ContextEnrichmentGateway(make_memory(), max_line_chars=20)
        result = RetrieveResult(items=[RetrievedItem(summary="word  \n" * 20)])

        line = gateway.format_context(result).strip().split("\n")[1]

        assert line.endswith("...")
        assert len(line) <= len("- ") + 20
        assert "\n" not in line and "  " not in line

    def test_skips_blank_summaries(self, make_memory) -> None:
        gateway = ContextEnrichmentGateway(make_memory())
        result = RetrieveResult(
            items=[RetrievedItem(summary="")],
            categories=[CategorySummary(name="triggers", summary="")],
        )
        assert gateway.format_context(result) == ""
