"""
Health Check Endpoints

Provides system health and readiness endpoints for:
- Load balancer health checks
- Kubernetes probes
- Monitoring systems
"""

import asyncio

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from kokoro import __version__
from kokoro.api.dependencies import AppServices, get_services
from kokoro.config import get_settings
from kokoro.config.logging_config import get_logger
from kokoro.infrastructure.llm.provider import StreamingProvider

logger = get_logger(__name__)
router = APIRouter()

PROVIDER_CHECK_TIMEOUT_SECONDS = 5.0


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response with component configuration."""

    ready: bool
    components: dict


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Basic health check endpoint for load balancers",
)
async def health_check() -> HealthResponse:
    """Returns 200 if application is running."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=get_settings().env,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Which providers are configured and reachable, and whether memU is configured",
)
async def readiness_check(
    services: AppServices = Depends(get_services),
) -> ReadinessResponse:
    """
    Readiness check.

    The service is always able to answer (template fallback), so it
    is ready whenever it is up. Components report which optional
    dependencies are configured, and configured providers are pinged.
    """
    providers = services.provider_chain.providers
    reachable = await asyncio.gather(*(_ping(p) for p in providers))

    components: dict = {}
    for provider, ok in zip(providers, reachable):
        components[f"provider_{provider.provider_name}"] = provider.is_configured()
        components[f"provider_{provider.provider_name}_reachable"] = ok
    components["memu"] = services.memory_client.is_configured()
    components["template_fallback"] = True
    components["background_tasks_pending"] = services.task_runner.pending

    return ReadinessResponse(
        ready=True,
        components=components,
    )


async def _ping(provider: StreamingProvider) -> bool:
    if not provider.is_configured():
        return False
    try:
        return await asyncio.wait_for(provider.health_check(), timeout=PROVIDER_CHECK_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("Provider health check timed out", provider=provider.provider_name)
        return False
