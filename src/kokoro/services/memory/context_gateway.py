"""
Context Enrichment Gateway

Fetches prior relevant facts about a user from the memory provider
and formats them into a bounded text block for the prompt.

ARCHITECTURE: Enrichment is best-effort. Any provider failure,
timeout or malformed payload yields an empty context; this gateway
never raises to its caller.
"""

import asyncio
from typing import Optional

from kokoro.config.logging_config import get_logger
from kokoro.infrastructure.memory.memu_client import MemUClient, RetrieveResult
from kokoro.infrastructure.metrics import track_enrichment

logger = get_logger(__name__)

CONTEXT_LABEL = "**Relevant memories about this mother:**"


class ContextEnrichmentGateway:
    """
    Best-effort memory lookup for prompt enrichment.

    Usage:
        gateway = ContextEnrichmentGateway(memu_client)
        context = await gateway.get_context(user_id, message)
    """

    def __init__(
        self,
        memory_client: MemUClient,
        max_items: int = 5,
        max_categories: int = 5,
        max_line_chars: int = 300,
        timeout_seconds: Optional[float] = 3.0,
    ) -> None:
        """
        Args:
            memory_client: memU client
            max_items: Maximum memory items included
            max_categories: Maximum category summaries included
            max_line_chars: Each summary is truncated to this length
            timeout_seconds: Overall bound on the lookup (None disables)
        """
        self._memory = memory_client
        self._max_items = max_items
        self._max_categories = max_categories
        self._max_line_chars = max_line_chars
        self._timeout = timeout_seconds

    async def get_context(self, user_id: str, query_text: str) -> str:
        """
        Fetch and format memories relevant to the query.

        Args:
            user_id: Owning user
            query_text: Current user message

        Returns:
            Formatted context block, or "" when nothing is available
        """
        try:
            memories = await asyncio.wait_for(
                self._memory.retrieve(query_text, user_id, "rag", self._max_items),
                timeout=self._timeout,
            )
            context = self.format_context(memories)
        except Exception as e:
            # Enrichment is optional: every failure mode degrades to no context
            logger.warning(
                "Memory context retrieval skipped",
                error_type=type(e).__name__,
                error=str(e),
            )
            track_enrichment("failed")
            return ""

        track_enrichment("hit" if context else "empty")
        return context

    def format_context(self, memories: RetrieveResult) -> str:
        """Format retrieved memories as a labelled bullet list."""
        lines: list[str] = []

        for category in memories.categories[:self._max_categories]:
            if category.summary:
                lines.append(f"- [{category.name}]: {self._truncate(category.summary)}")

        for item in memories.items[:self._max_items]:
            if item.summary:
                lines.append(f"- {self._truncate(item.summary)}")

        if not lines:
            return ""

        return f"\n\n{CONTEXT_LABEL}\n" + "".join(f"{line}\n" for line in lines)

    def _truncate(self, text: str) -> str:
        text = " ".join(text.split())
        if len(text) <= self._max_line_chars:
            return text
        return text[:self._max_line_chars - 3].rstrip() + "..."
