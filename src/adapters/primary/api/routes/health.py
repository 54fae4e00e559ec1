from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text

from src.shared.config import settings
from src.shared.database import engine
from src.shared.logger import get_logger
from src.shared.redis_client import redis_client

logger = get_logger(__name__)
router = APIRouter(tags=["Health"])


def _uses_redis() -> bool:
    return settings.EVENT_PUBLISHER_BACKEND == "redis" or settings.LOCK_BACKEND == "redis"


@router.get("/health")
async def health_check(response: Response):
    """Reports the health of the backends the current configuration actually uses."""
    dependencies = {"repository": settings.REPOSITORY_BACKEND}
    healthy = True

    if _uses_redis():
        try:
            await redis_client.ping()
            dependencies["redis"] = "healthy"
        except Exception as e:
            logger.error("health_check_failed", dependency="redis", error=str(e))
            dependencies["redis"] = "unhealthy"
            healthy = False

    if settings.REPOSITORY_BACKEND == "postgres":
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                dependencies["postgres"] = "healthy"
        except Exception as e:
            logger.error("health_check_failed", dependency="postgres", error=str(e))
            dependencies["postgres"] = "unhealthy"
            healthy = False

    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.APP_VERSION,
        "dependencies": dependencies
    }


@router.get("/metrics", tags=["Metrics"])
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
