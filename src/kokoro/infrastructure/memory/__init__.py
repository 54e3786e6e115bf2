"""Long-term memory provider package."""

from kokoro.infrastructure.memory.memu_client import (
    PPD_MEMORY_CATEGORIES,
    CategorySummary,
    MemoryItem,
    MemoryProviderError,
    MemUClient,
    RetrievedItem,
    RetrieveResult,
)

__all__ = [
    "PPD_MEMORY_CATEGORIES",
    "CategorySummary",
    "MemoryItem",
    "MemoryProviderError",
    "MemUClient",
    "RetrievedItem",
    "RetrieveResult",
]
