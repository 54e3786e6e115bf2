"""
Kokoro FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (service graph startup/shutdown)
- CORS configuration
- Error handling middleware
- Router registration
- Metrics endpoint

This is the production entry point for the Kokoro backend.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kokoro import __version__
from kokoro.api.dependencies import build_services
from kokoro.api.middleware.error_handler import ApiError, ErrorHandlerMiddleware, api_error_handler
from kokoro.api.v1.router import api_router
from kokoro.config import get_settings
from kokoro.config.logging_config import configure_logging, get_logger
from kokoro.infrastructure.metrics import metrics_router, update_system_info
from kokoro.infrastructure.monitoring import init_sentry

# Initialize settings and logging
settings = get_settings()
configure_logging(settings)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds the service graph on startup. On shutdown, drains pending
    archival tasks for a bounded time and closes the memU client.
    """
    logger.info(
        "Starting Kokoro application",
        env=settings.env,
        version=__version__,
    )

    init_sentry(
        settings.sentry.dsn,
        environment=settings.env,
        release=f"kokoro@{__version__}",
        traces_sample_rate=settings.sentry.traces_sample_rate,
    )
    update_system_info(settings.env, __version__)

    services = build_services(settings)
    app.state.services = services
    logger.info("Application services initialized")

    try:
        yield

    finally:
        logger.info("Shutting down Kokoro application")

        await services.task_runner.shutdown(settings.chat.archive_drain_timeout_seconds)
        await services.memory_client.close()

        logger.info("Kokoro application shutdown complete")


def create_application() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Kokoro API",
        description="Crisis-aware companion for expecting and new mothers - Backend API",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(ErrorHandlerMiddleware)
    app.add_exception_handler(ApiError, api_error_handler)

    app.include_router(
        api_router,
        prefix=f"/api/{settings.api_version}",
    )
    app.include_router(metrics_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint - basic info."""
        return {
            "name": "Kokoro API",
            "version": __version__,
            "status": "operational",
        }

    return app


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "kokoro.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )
