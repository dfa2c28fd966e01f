"""Health check endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from marketdesk.api.dependencies.services import get_database
from marketdesk.core.database import Database
from marketdesk.schemas.base import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness check."""
    return HealthResponse(status="ok", message="Server is running")


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(
    database: Annotated[Database, Depends(get_database)],
) -> ReadinessResponse:
    """Readiness check that probes the database."""
    db_ok = await database.check_connection()
    return ReadinessResponse(status="ready" if db_ok else "degraded", database=db_ok)
