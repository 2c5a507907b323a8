"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shared.config import Settings
from shared.database import check_connection

from ..dependencies import ServiceContainer, get_app_settings, get_container

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    storage: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=settings.app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    container: ServiceContainer = Depends(get_container),
) -> ReadinessResponse:
    """
    Readiness check endpoint.

    With the memory backend there is nothing external to reach. With
    Supabase a one-row read confirms the database answers.
    """
    backend = container.settings.storage_backend
    if backend == "memory":
        return ReadinessResponse(status="ready", storage=backend, database="not_used")

    if not check_connection():
        return ReadinessResponse(status="degraded", storage=backend, database="unavailable")

    return ReadinessResponse(status="ready", storage=backend, database="connected")
