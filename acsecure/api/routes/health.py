"""
Health Check Endpoints.
"""
import time
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..models import HealthStatus
from ..deps import get_app_settings, get_redis_client
from ...config import Settings
from ... import __version__

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthStatus)
async def health_check(settings: Settings = Depends(get_app_settings)):
    """
    Basic health check endpoint.

    Redis is optional; without it pending logins live in memory.
    """
    services = {}

    try:
        redis_client = get_redis_client(settings)
        if redis_client:
            start = time.time()
            redis_client.ping()
            latency = (time.time() - start) * 1000
            services["redis"] = f"healthy ({latency:.1f}ms)"
        else:
            services["redis"] = "fallback_mode (in-memory)"
    except Exception as e:
        # Not critical: the in-memory store takes over
        logger.warning(f"Redis health check failed: {e}")
        services["redis"] = f"unhealthy: {e}"

    return HealthStatus(
        status="healthy",
        version=__version__,
        services=services,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/live")
async def liveness():
    """Liveness probe."""
    return {"status": "alive"}
