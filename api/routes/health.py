"""
Health Check Routes
===================

Kubernetes-compatible health and readiness endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Request

from api import __version__
from api.schemas import HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the service",
)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint for load balancers and monitoring.

    Missing provider credentials leave the API up but degraded.
    """
    settings = request.app.state.settings
    checks = {
        "api": True,
        "llm_configured": settings.llm_configured,
        "sandbox_configured": settings.sandbox_configured,
    }

    status = HealthStatus.HEALTHY if all(checks.values()) else HealthStatus.DEGRADED

    return HealthResponse(
        status=status,
        version=__version__,
        timestamp=datetime.utcnow(),
        checks=checks,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Returns whether the service is ready to handle requests",
)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness check for Kubernetes."""
    state = request.app.state
    checks = {
        "agent_loaded": getattr(state, "agent", None) is not None,
        "analyzer_loaded": getattr(state, "analyzer", None) is not None,
    }

    return ReadinessResponse(
        ready=all(checks.values()),
        checks=checks,
    )


@router.get(
    "/live",
    summary="Liveness check",
    description="Simple liveness probe",
)
async def liveness_check() -> dict:
    """Liveness check for Kubernetes."""
    return {"status": "ok"}
