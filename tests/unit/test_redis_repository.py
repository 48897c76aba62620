"""
Unit tests for the RedisRepository connection singleton.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from redis.exceptions import ConnectionError as RedisConnectionError

from backend.repositories.redis_repository import (
    PRINCIPAL,
    SUSCRIPCIONES,
    RedisRepository
)


@pytest.fixture
def redis_repo():
    RedisRepository._instance = None
    repo = RedisRepository()
    yield repo
    RedisRepository._instance = None


def mock_client(ping=True) -> MagicMock:
    client = MagicMock()
    client.ping = AsyncMock(return_value=ping)
    client.aclose = AsyncMock()
    return client


def test_singleton(redis_repo):
    assert RedisRepository() is redis_repo


def test_clients_are_none_before_connect(redis_repo):
    assert redis_repo.get_client() is None
    assert redis_repo.get_pubsub_client() is None
    assert redis_repo.connected is False


@pytest.mark.asyncio
async def test_health_check_not_connected(redis_repo):
    health = await redis_repo.health_check()

    assert health["status"] == "unhealthy"


@pytest.mark.asyncio
async def test_health_check_healthy(redis_repo):
    redis_repo.clients = {PRINCIPAL: mock_client(), SUSCRIPCIONES: mock_client()}

    assert await redis_repo.health_check() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_health_check_ping_error(redis_repo):
    client = mock_client()
    client.ping.side_effect = RedisConnectionError("connection refused")
    redis_repo.clients = {PRINCIPAL: client, SUSCRIPCIONES: mock_client()}

    health = await redis_repo.health_check()

    assert health["status"] == "unhealthy"
    assert "connection refused" in health["error"]


@pytest.mark.asyncio
async def test_disconnect_closes_clients_and_is_idempotent(redis_repo):
    principal, suscripciones = mock_client(), mock_client()
    redis_repo.clients = {PRINCIPAL: principal, SUSCRIPCIONES: suscripciones}

    await redis_repo.disconnect()
    await redis_repo.disconnect()

    principal.aclose.assert_awaited_once()
    suscripciones.aclose.assert_awaited_once()
    assert redis_repo.get_client() is None
