"""
SSE Service - streaming de cambios de remisiones.

Se suscribe al canal Redis `remisiones:updates`, donde RemisionRepository
publica dentro de cada transacción de escritura, y reenvía los mensajes
como eventos `remision_update`. Un cliente puede seguir todas las
remisiones o solo una (pantalla de detalle).

Usage:
    from backend.services.sse_service import event_generator
    from sse_starlette import EventSourceResponse

    return EventSourceResponse(event_generator(request, redis, remision_id), ping=15)
"""
import json
import logging
from typing import Any, AsyncGenerator, Optional

from fastapi import Request
from redis import asyncio as aioredis

from backend.services.redis_event_service import CHANNEL

logger = logging.getLogger(__name__)

SSE_EVENT = "remision_update"

# Espera máxima por mensaje antes de revisar si el cliente sigue conectado
POLL_TIMEOUT_SEGUNDOS = 1.0


def to_sse_event(raw: str, remision_id: Optional[str] = None) -> Optional[dict[str, Any]]:
    """
    Convierte un mensaje del canal en evento SSE.

    Returns:
        None si el JSON es inválido o el evento es de otra remisión
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Malformed JSON on {CHANNEL}: {e}")
        return None

    if remision_id is not None and data.get("remision_id") != remision_id:
        return None

    return {
        "event": SSE_EVENT,
        "data": json.dumps(data),
        "id": data.get("version"),  # Last-Event-ID
    }


async def event_generator(
    request: Request,
    redis: aioredis.Redis,
    remision_id: Optional[str] = None
) -> AsyncGenerator[dict[str, Any], None]:
    """Eventos SSE hasta que el cliente se desconecta."""
    filtro = remision_id or "todas"
    logger.info(f"SSE client connected | {CHANNEL} | remision: {filtro}")

    async with redis.pubsub() as pubsub:
        await pubsub.subscribe(CHANNEL)
        try:
            while not await request.is_disconnected():
                message = await pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=POLL_TIMEOUT_SEGUNDOS
                )
                if not message or message["type"] != "message":
                    continue

                evento = to_sse_event(message["data"], remision_id)
                if evento is not None:
                    yield evento
        finally:
            logger.info(f"SSE client gone | remision: {filtro}")
