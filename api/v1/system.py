"""
System endpoints.

Health checks and system status.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from ..deps import ServicesDep

router = APIRouter()


@router.get("/health")
async def health_check(services: ServicesDep):
    """
    Health check endpoint.

    Returns service status and deployment environment.
    """
    return {
        "status": "OK",
        "message": "ITP NOTIFICATION Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": services.config.app.environment
    }
