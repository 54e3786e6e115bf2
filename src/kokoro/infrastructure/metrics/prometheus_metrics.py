"""
Prometheus Metrics

Metrics for Kokoro chat and screening observability.
Exposes metrics at /metrics endpoint for Prometheus scraping.

ARCHITECTURE: Metrics are decoupled from business logic.
Only increment/observe; never block on metrics operations.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)
from fastapi import APIRouter, Response

# =============================================================================
# CHAT TURN METRICS
# =============================================================================

CHAT_TURNS_TOTAL = Counter(
    "kokoro_chat_turns_total",
    "Chat turns by risk level and outcome",
    ["risk_level", "outcome"],  # completed, cancelled
)

SAFETY_MESSAGES_EMITTED = Counter(
    "kokoro_safety_messages_emitted_total",
    "Deterministic safety messages emitted ahead of generated text",
    ["risk_level"],
)

# =============================================================================
# PROVIDER METRICS
# =============================================================================

PROVIDER_ATTEMPTS_TOTAL = Counter(
    "kokoro_provider_attempts_total",
    "Provider chain attempts by provider and outcome",
    ["provider", "outcome"],  # success, failure, skipped, interrupted
)

PROVIDER_FIRST_CHUNK_LATENCY = Histogram(
    "kokoro_provider_first_chunk_seconds",
    "Time until a provider produced its first chunk",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0],
)

# =============================================================================
# MEMORY METRICS
# =============================================================================

MEMORY_ENRICHMENT_TOTAL = Counter(
    "kokoro_memory_enrichment_total",
    "Context enrichment lookups",
    ["result"],  # hit, empty, failed
)

MEMORY_ARCHIVAL_TOTAL = Counter(
    "kokoro_memory_archival_total",
    "Conversation archival writes",
    ["result"],  # stored, failed, skipped
)

# =============================================================================
# SCREENING METRICS
# =============================================================================

SCREENING_SUBMISSIONS_TOTAL = Counter(
    "kokoro_screening_submissions_total",
    "Screening submissions by instrument and risk level",
    ["instrument", "risk_level"],
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "kokoro_system",
    "Kokoro system information",
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def track_chat_turn(risk_level: str, cancelled: bool) -> None:
    """Record a finished chat turn."""
    outcome = "cancelled" if cancelled else "completed"
    CHAT_TURNS_TOTAL.labels(risk_level=risk_level, outcome=outcome).inc()


def track_provider_attempt(provider: str, outcome: str) -> None:
    """Record one provider chain attempt."""
    PROVIDER_ATTEMPTS_TOTAL.labels(provider=provider, outcome=outcome).inc()


def track_safety_message(risk_level: str) -> None:
    SAFETY_MESSAGES_EMITTED.labels(risk_level=risk_level).inc()


def track_enrichment(result: str) -> None:
    MEMORY_ENRICHMENT_TOTAL.labels(result=result).inc()


def track_archival(result: str) -> None:
    MEMORY_ARCHIVAL_TOTAL.labels(result=result).inc()


def track_screening(instrument: str, risk_level: str) -> None:
    SCREENING_SUBMISSIONS_TOTAL.labels(instrument=instrument, risk_level=risk_level).inc()


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )


def update_system_info(environment: str, version: str = "0.1.0") -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version,
        "environment": environment,
    })
