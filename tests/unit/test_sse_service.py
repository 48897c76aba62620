"""
Unit tests for the SSE event stream (mocked Redis pub/sub and request).
"""
import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from backend.services.sse_service import event_generator, to_sse_event


def mensaje(remision_id: str, version: str) -> dict:
    return {
        "type": "message",
        "data": json.dumps({
            "event_type": "REMISION_UPDATE",
            "remision_id": remision_id,
            "estado": "RADICADO",
            "version": version
        })
    }


def mock_redis_con(mensajes: list) -> tuple[MagicMock, MagicMock]:
    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.get_message = AsyncMock(side_effect=mensajes)
    pubsub.__aenter__ = AsyncMock(return_value=pubsub)
    pubsub.__aexit__ = AsyncMock(return_value=False)

    redis = MagicMock()
    redis.pubsub = MagicMock(return_value=pubsub)
    return redis, pubsub


def mock_request(conectado_durante: int) -> MagicMock:
    request = MagicMock()
    request.is_disconnected = AsyncMock(
        side_effect=[False] * conectado_durante + [True]
    )
    return request


def test_to_sse_event_uses_version_as_event_id():
    evento = to_sse_event(mensaje("rem-001", "v2")["data"])

    assert evento["event"] == "remision_update"
    assert evento["id"] == "v2"
    assert json.loads(evento["data"])["estado"] == "RADICADO"


def test_to_sse_event_drops_malformed_json():
    assert to_sse_event("{no es json") is None


def test_to_sse_event_filters_other_remisiones():
    assert to_sse_event(mensaje("rem-002", "v1")["data"], remision_id="rem-001") is None


@pytest.mark.asyncio
async def test_stream_yields_until_client_disconnects():
    redis, pubsub = mock_redis_con([
        mensaje("rem-001", "v1"),
        None,
        mensaje("rem-002", "v7"),
    ])

    eventos = [e async for e in event_generator(mock_request(3), redis)]

    pubsub.subscribe.assert_awaited_once_with("remisiones:updates")
    assert [e["id"] for e in eventos] == ["v1", "v7"]


@pytest.mark.asyncio
async def test_stream_filtered_by_remision():
    redis, _ = mock_redis_con([
        mensaje("rem-002", "v1"),
        mensaje("rem-001", "v2"),
    ])

    eventos = [e async for e in event_generator(mock_request(2), redis, remision_id="rem-001")]

    assert [e["id"] for e in eventos] == ["v2"]
