"""
SSE Router - cambios de remisiones en tiempo real.

Endpoints:
    GET /api/sse/stream                    - Todas las remisiones
    GET /api/sse/stream?remision_id=rem-001 - Una sola remisión
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sse_starlette import EventSourceResponse
from redis import asyncio as aioredis

from backend.exceptions import RepositoryConnectionError
from backend.services.sse_service import event_generator
from backend.repositories.redis_repository import RedisRepository

router = APIRouter(prefix="/api/sse", tags=["sse"])


def get_redis_pubsub() -> aioredis.Redis:
    """
    Dependency: cliente Redis del pool de suscripciones.

    Raises:
        RepositoryConnectionError: Si Redis no está conectado (503)
    """
    client = RedisRepository().get_pubsub_client()
    if client is None:
        raise RepositoryConnectionError("Redis no conectado")
    return client


@router.get("/stream")
async def sse_stream(
    request: Request,
    remision_id: Optional[str] = Query(None, description="Solo eventos de esta remisión"),
    redis: aioredis.Redis = Depends(get_redis_pubsub)
):
    """
    Stream SSE de cambios de remisiones.

    Response format:
        event: remision_update
        data: {"event_type": "REMISION_UPDATE", "remision_id": "rem-001", "estado": "RADICADO", ...}
        id: 7c9e6679-7425-40de-944b-e07fc1f90ae7

    Configuration:
        - ping=15: keep-alive cada 15 segundos
        - send_timeout=30: conexiones muertas detectadas a los 30s
    """
    headers = {
        "Cache-Control": "no-cache, no-transform",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",  # nginx
    }

    return EventSourceResponse(
        event_generator(request, redis, remision_id),
        headers=headers,
        ping=15,
        send_timeout=30
    )
