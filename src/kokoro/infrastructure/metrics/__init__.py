"""Metrics infrastructure package."""

from kokoro.infrastructure.metrics.prometheus_metrics import (
    # Chat metrics
    CHAT_TURNS_TOTAL,
    SAFETY_MESSAGES_EMITTED,
    # Provider metrics
    PROVIDER_ATTEMPTS_TOTAL,
    PROVIDER_FIRST_CHUNK_LATENCY,
    # Memory metrics
    MEMORY_ENRICHMENT_TOTAL,
    MEMORY_ARCHIVAL_TOTAL,
    # Screening metrics
    SCREENING_SUBMISSIONS_TOTAL,
    # Helpers
    track_chat_turn,
    track_provider_attempt,
    track_safety_message,
    track_enrichment,
    track_archival,
    track_screening,
    update_system_info,
    # Router
    metrics_router,
)

__all__ = [
    "CHAT_TURNS_TOTAL",
    "SAFETY_MESSAGES_EMITTED",
    "PROVIDER_ATTEMPTS_TOTAL",
    "PROVIDER_FIRST_CHUNK_LATENCY",
    "MEMORY_ENRICHMENT_TOTAL",
    "MEMORY_ARCHIVAL_TOTAL",
    "SCREENING_SUBMISSIONS_TOTAL",
    "track_chat_turn",
    "track_provider_attempt",
    "track_safety_message",
    "track_enrichment",
    "track_archival",
    "track_screening",
    "update_system_info",
    "metrics_router",
]
