"""
Health Check Router.

Endpoint:
- GET /api/health - Estado de la API y de la conexión Redis
"""
import logging

from fastapi import APIRouter, status

from backend.config import config
from backend.repositories.redis_repository import RedisRepository
from backend.utils.date_formatter import now_colombia

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """
    Health check para monitoreo.

    Si Redis no responde retorna status "degraded" con 200 OK en lugar de
    503, para que la plataforma no reinicie la app mientras Redis se recupera.

    Example response:
        ```json
        {
            "status": "healthy",
            "timestamp": "2026-03-02T09:15:00-05:00",
            "environment": "development",
            "redis_connection": "ok",
            "version": "1.0.0"
        }
        ```
    """
    redis_health = await RedisRepository().health_check()
    redis_ok = redis_health["status"] == "healthy"

    if not redis_ok:
        logger.error(f"Health check degraded: Redis {redis_health.get('error')}")

    return {
        "status": "healthy" if redis_ok else "degraded",
        "timestamp": now_colombia().isoformat(),
        "environment": config.ENVIRONMENT,
        "redis_connection": "ok" if redis_ok else "error",
        "version": "1.0.0"
    }
