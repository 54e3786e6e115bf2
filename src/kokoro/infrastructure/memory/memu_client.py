"""
memU Memory Client

HTTP client for the memU long-term memory service (api.memu.so).

memU exposes:
- POST /api/v3/memory/memorize   - Extract memories from free text
- POST /api/v3/memory/items      - Create a memory item directly
- POST /api/v3/memory/retrieve   - Retrieve memories relevant to a query

ARCHITECTURE: Every failure is raised as MemoryProviderError.
Callers decide how to degrade; none of them treat memory as a
hard dependency.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from kokoro.config import get_settings
from kokoro.config.logging_config import get_logger

logger = get_logger(__name__)


# Categories memU organises a mother's memories into
PPD_MEMORY_CATEGORIES: list[dict[str, str]] = [
    {
        "name": "mood_patterns",
        "description": "Daily mood entries, emotional trends, sleep quality, and energy levels tracked over time.",
    },
    {
        "name": "triggers",
        "description": "Identified triggers for mood changes, such as situations, times of day, activities, or thoughts that affect emotional state.",
    },
    {
        "name": "coping_strategies",
        "description": "Coping strategies the mother has tried, what helped, what did not help, and preferred self-care activities.",
    },
    {
        "name": "baby_milestones",
        "description": "Baby age, developmental milestones, feeding patterns, sleep schedule, and caregiving challenges.",
    },
    {
        "name": "screening_history",
        "description": "EPDS scores, PHQ-2 results, and crisis level history over time for longitudinal tracking.",
    },
    {
        "name": "personal_context",
        "description": "User background, support network, living situation, work status, relationship dynamics, and cultural context.",
    },
    {
        "name": "conversation_insights",
        "description": "Key themes, recurring concerns, breakthroughs, and important revelations from chat sessions.",
    },
]

CONVERSATION_EXCERPT_CHARS = 200


class MemoryProviderError(Exception):
    """memU could not be reached or returned an unusable response."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.original_error = original_error


@dataclass
class MemoryItem:
    """A memory item to store directly."""

    memory_type: str
    memory_content: str
    memory_categories: list[str]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RetrievedItem:
    """A memory returned by retrieval."""

    summary: str
    id: str = ""
    memory_type: str = ""
    categories: list[str] = field(default_factory=list)
    score: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RetrievedItem":
        """Create from API response dict."""
        score = data.get("score")
        return cls(
            summary=str(data.get("summary") or ""),
            id=str(data.get("id") or ""),
            memory_type=str(data.get("memory_type") or ""),
            categories=list(data.get("categories") or []),
            score=float(score) if isinstance(score, (int, float)) else None,
        )


@dataclass
class CategorySummary:
    """A memory category with its rolling summary."""

    name: str
    summary: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "CategorySummary":
        return cls(
            name=str(data.get("name") or ""),
            summary=str(data.get("summary") or ""),
        )


@dataclass
class RetrieveResult:
    """Result of a memory retrieval."""

    items: list[RetrievedItem] = field(default_factory=list)
    categories: list[CategorySummary] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.items and not self.categories


class MemUClient:
    """
    HTTP client for the memU API.

    Usage:
        client = MemUClient()
        memories = await client.retrieve("sleep", user_id)
        await client.close()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize client.

        Args:
            base_url: memU base URL (defaults to settings)
            api_key: memU API key (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
        """
        settings = get_settings()
        self.base_url = base_url or settings.memu.api_url
        self._api_key = api_key if api_key is not None else settings.memu.api_key.get_secret_value()
        self.timeout = timeout or settings.memu.timeout_seconds
        self._client: Optional[httpx.AsyncClient] = None

    def is_configured(self) -> bool:
        """Check if an API key is configured."""
        return bool(self._api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, endpoint: str, body: dict) -> dict:
        """
        POST a JSON body and return the decoded JSON object.

        Raises:
            MemoryProviderError: Unconfigured, transport error,
                non-2xx status, or non-object JSON
        """
        if not self.is_configured():
            raise MemoryProviderError("memU API key not configured")

        client = await self._get_client()

        try:
            response = await client.post(endpoint, json=body)
        except httpx.HTTPError as e:
            raise MemoryProviderError(
                f"memU request failed: {e}",
                original_error=e,
            ) from e

        if response.status_code >= 400:
            logger.warning(
                "memU API error",
                endpoint=endpoint,
                status_code=response.status_code,
            )
            raise MemoryProviderError(
                f"memU API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MemoryProviderError(
                "memU returned malformed JSON",
                status_code=response.status_code,
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise MemoryProviderError(
                "memU returned an unexpected payload",
                status_code=response.status_code,
            )
        return data

    # === Core API ===

    async def memorize(
        self,
        content: str,
        user_id: str,
        modality: str = "conversation",
    ) -> dict:
        """Memorize a conversation or free-text resource."""
        return await self._request("/api/v3/memory/memorize", {
            "resource_content": content,
            "modality": modality,
            "user_id": user_id,
            "memorize_config": {
                "memory_categories": PPD_MEMORY_CATEGORIES,
            },
        })

    async def create_memory_item(self, item: MemoryItem, user_id: str) -> dict:
        """Create a specific memory item directly."""
        return await self._request("/api/v3/memory/items", {
            "memory_type": item.memory_type,
            "memory_content": item.memory_content,
            "memory_categories": item.memory_categories,
            "user_id": user_id,
            "metadata": item.metadata,
        })

    async def retrieve(
        self,
        query: str,
        user_id: str,
        method: str = "rag",
        limit: int = 5,
    ) -> RetrieveResult:
        """
        Retrieve memories relevant to a query.

        Raises:
            MemoryProviderError: On any provider failure or malformed payload
        """
        data = await self._request("/api/v3/memory/retrieve", {
            "queries": [{"role": "user", "content": query}],
            "method": method,
            "user_id": user_id,
            "limit": limit,
        })

        items = data.get("items") or []
        categories = data.get("categories") or []
        if not isinstance(items, list) or not isinstance(categories, list):
            raise MemoryProviderError("memU retrieve payload has unexpected shape")

        try:
            return RetrieveResult(
                items=[RetrievedItem.from_dict(i) for i in items],
                categories=[CategorySummary.from_dict(c) for c in categories],
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise MemoryProviderError(
                "memU retrieve payload has malformed entries",
                original_error=e,
            ) from e

    # === Kokoro convenience methods ===

    async def store_conversation(
        self,
        user_id: str,
        user_message: str,
        ai_response: str,
        crisis_level: str,
    ) -> dict:
        """Memorize one chat exchange."""
        content = (
            f'User said: "{user_message}"\n'
            f"Kokoro responded about: {ai_response[:CONVERSATION_EXCERPT_CHARS]}...\n"
            f"Crisis level: {crisis_level}"
        )
        return await self.memorize(content, user_id, "conversation")

    async def store_screening_result(
        self,
        user_id: str,
        total_score: int,
        item10_score: int,
        crisis_level: str,
        timestamp: str,
    ) -> dict:
        """Store an EPDS screening result."""
        outcome = (
            "Score indicates possible PPD, professional follow-up recommended."
            if total_score >= 9
            else "Score within normal range."
        )
        content = (
            f"EPDS screening on {timestamp}: "
            f"Total score {total_score}/30. "
            f"Crisis level: {crisis_level}. "
            f"Item 10 (self-harm): {item10_score}/3. "
            f"{outcome}"
        )
        return await self.create_memory_item(MemoryItem(
            memory_type="profile",
            memory_content=content,
            memory_categories=["screening_history"],
            metadata={
                "type": "epds_screening",
                "totalScore": total_score,
                "item10Score": item10_score,
                "crisisLevel": crisis_level,
                "timestamp": timestamp,
            },
        ), user_id)

    async def store_clinical_flag(
        self,
        user_id: str,
        total_score: int,
        crisis_level: str,
        concern_areas: list[str],
        timestamp: str,
    ) -> dict:
        """Store a flag memory for a screening that warrants follow-up."""
        areas = ", ".join(concern_areas) if concern_areas else "general elevated scores"
        content = (
            f"EPDS score of {total_score} on {timestamp} indicates possible postpartum depression. "
            f"Crisis level: {crisis_level}. Professional consultation recommended. "
            f"Areas of highest concern: {areas}."
        )
        return await self.create_memory_item(MemoryItem(
            memory_type="profile",
            memory_content=content,
            memory_categories=["screening_history", "personal_context"],
            metadata={
                "type": "clinical_flag",
                "totalScore": total_score,
                "crisisLevel": crisis_level,
                "timestamp": timestamp,
            },
        ), user_id)

    async def store_phq2_result(
        self,
        user_id: str,
        answers: list[int],
        total: int,
        suggests_epds: bool,
        timestamp: str,
    ) -> dict:
        """Store a PHQ-2 quick screen result."""
        outcome = (
            "Score suggests further EPDS screening recommended."
            if suggests_epds
            else "Score within normal range."
        )
        return await self.create_memory_item(MemoryItem(
            memory_type="profile",
            memory_content=f"PHQ-2 quick screen on {timestamp}: Score {total}/6. {outcome}",
            memory_categories=["screening_history"],
            metadata={
                "type": "phq2_screening",
                "total": total,
                "answers": answers,
                "timestamp": timestamp,
            },
        ), user_id)
