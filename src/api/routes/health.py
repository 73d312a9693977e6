"""
Health check endpoints.

Provides endpoints for monitoring application health and status.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

from config.settings import get_settings


router = APIRouter(tags=["Health"])


def _mongo_status(request: Request) -> Dict[str, Any]:
    mongo = getattr(request.app.state, "mongo", None)
    if mongo is None:
        return {"status": "not_configured", "error": None}
    return mongo.ping()


@router.get("/health")
def health_check() -> Dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "listing-search",
    }


@router.get("/health/detailed")
def detailed_health_check(request: Request) -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Configuration loaded
    - MongoDB reachable (ping)
    """
    settings = get_settings()
    mongo = _mongo_status(request)

    return {
        "status": "healthy" if mongo["status"] == "connected" else "degraded",
        "service": "listing-search",
        "environment": settings.environment,
        "checks": {
            "config": "ok",
            "mongodb": mongo,
        },
    }


@router.get("/ready")
def readiness_check(request: Request) -> Dict[str, str]:
    """
    Kubernetes-style readiness probe.

    Ready once the lifespan has opened the MongoDB client.
    """
    mongo = getattr(request.app.state, "mongo", None)
    if mongo is None or not mongo.is_open:
        return {"status": "not_ready", "reason": "database_not_configured"}

    return {"status": "ready"}


@router.get("/live")
def liveness_check() -> Dict[str, str]:
    """Kubernetes-style liveness probe."""
    return {"status": "alive"}
