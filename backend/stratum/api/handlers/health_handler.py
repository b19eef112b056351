"""
Health Check Handler

Provides health check endpoints for monitoring and load balancers.
These are the only routes that do not require a Bearer token.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stratum.config.settings import settings
from stratum.shared.core.logging import logger
from stratum.shared.db.session import get_session_factory, ping_db
from stratum.shared.schemas.common import HealthResponse


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Basic health check endpoint.

    Returns:
        HealthResponse with service status
    """
    return HealthResponse(
        status="healthy",
        service=settings.APP_NAME.lower(),
        version=settings.APP_VERSION,
    )


@router.get("/ready")
async def readiness_check(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
):
    """
    Readiness check for Kubernetes/load balancers.

    Ready means the database answers a trivial query.
    """
    try:
        await ping_db(session_factory)
    except Exception as e:
        logger.warning("Readiness check failed", error=str(e))
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}


@router.get("/live")
async def liveness_check():
    """
    Liveness check for Kubernetes.

    Returns:
        Simple alive status
    """
    return {"status": "alive"}
