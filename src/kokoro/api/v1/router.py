"""
API v1 Router

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from kokoro.api.v1.endpoints.chat import router as chat_router
from kokoro.api.v1.endpoints.health import router as health_router
from kokoro.api.v1.endpoints.screening import router as screening_router

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    chat_router,
    prefix="/chat",
    tags=["Chat"],
)

api_router.include_router(
    screening_router,
    prefix="/screening",
    tags=["Screening"],
)
