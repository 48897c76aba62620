"""
Conexión a Redis, el almacén de remisiones.

Un singleton mantiene dos clientes async sobre pools separados:
- principal: remisiones, historial, índice y PUBLISH (operaciones cortas)
- suscripciones: un PubSub por cliente SSE, conexiones de larga duración

Separar los pools evita que los streams SSE abiertos agoten las conexiones
que necesitan los cambios de estado.

Usage:
    almacen = RedisRepository()
    await almacen.connect()          # evento startup
    client = almacen.get_client()    # None mientras no haya conexión
    await almacen.disconnect()       # evento shutdown
"""
import logging
from typing import Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from backend.config import config

logger = logging.getLogger(__name__)

PRINCIPAL = "principal"
SUSCRIPCIONES = "suscripciones"

PUBSUB_MAX_CONNECTIONS = 30


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(RedisConnectionError),
    reraise=True
)
async def _ping(nombre: str, client: aioredis.Redis) -> None:
    """PING con 3 intentos y backoff exponencial."""
    try:
        if not await client.ping():
            raise RedisConnectionError(f"PING sin respuesta ({nombre})")
    except RedisConnectionError:
        logger.warning(f"Redis PING failed ({nombre}), retrying")
        raise
    except RedisError as e:
        logger.warning(f"Redis PING error ({nombre}): {e}")
        raise RedisConnectionError(f"PING {nombre}: {e}") from e


class RedisRepository:
    """
    Singleton de conexión. Los clientes quedan en `self.clients` por nombre
    (PRINCIPAL, SUSCRIPCIONES) una vez conectados.
    """

    _instance: Optional['RedisRepository'] = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance.clients = {}
            cls._instance = instance
        return cls._instance

    @property
    def connected(self) -> bool:
        return PRINCIPAL in self.clients and SUSCRIPCIONES in self.clients

    def get_client(self) -> Optional[aioredis.Redis]:
        """Cliente del pool principal, o None si startup aún no conectó."""
        client = self.clients.get(PRINCIPAL)
        if client is None:
            logger.warning("Redis client requested before startup connected it")
        return client

    def get_pubsub_client(self) -> Optional[aioredis.Redis]:
        """Cliente del pool de suscripciones SSE."""
        client = self.clients.get(SUSCRIPCIONES)
        if client is None:
            logger.warning("Redis pubsub client requested before startup connected it")
        return client

    @staticmethod
    def _build_client(max_connections: int) -> aioredis.Redis:
        pool = aioredis.ConnectionPool.from_url(
            config.REDIS_URL,
            max_connections=max_connections,
            decode_responses=True,
            encoding='utf-8',
            socket_connect_timeout=config.REDIS_SOCKET_CONNECT_TIMEOUT,
            socket_timeout=config.REDIS_SOCKET_TIMEOUT,
            socket_keepalive=True,
            retry_on_timeout=True,
            health_check_interval=config.REDIS_HEALTH_CHECK_INTERVAL
        )
        # from_pool: aclose() del cliente libera también su pool
        return aioredis.Redis.from_pool(pool)

    async def connect(self) -> None:
        """
        Crea ambos clientes y los verifica con PING.

        Raises:
            RedisConnectionError: Si algún PING falla tras los reintentos
        """
        if self.connected:
            logger.debug("Redis already connected")
            return

        logger.info(
            f"Connecting to Redis at {config.REDIS_URL} | "
            f"{PRINCIPAL}={config.REDIS_POOL_MAX_CONNECTIONS} {SUSCRIPCIONES}={PUBSUB_MAX_CONNECTIONS}"
        )

        clients = {
            PRINCIPAL: self._build_client(config.REDIS_POOL_MAX_CONNECTIONS),
            SUSCRIPCIONES: self._build_client(PUBSUB_MAX_CONNECTIONS),
        }

        try:
            for nombre, client in clients.items():
                await _ping(nombre, client)
        except RedisConnectionError as e:
            logger.error(f"❌ Failed to connect to Redis: {e}")
            for client in clients.values():
                await client.aclose()
            raise

        self.clients = clients
        logger.info("✅ Redis connected")

    async def disconnect(self) -> None:
        """Cierra ambos clientes. Idempotente; errores solo se registran."""
        clients, self.clients = self.clients, {}

        for nombre, client in clients.items():
            try:
                await client.aclose()
            except RedisError as e:
                logger.error(f"❌ Error closing Redis client ({nombre}): {e}")

        if clients:
            logger.info("Redis disconnected")

    async def health_check(self) -> dict:
        """
        Returns:
            {"status": "healthy"} o {"status": "unhealthy", "error": "..."}
        """
        client = self.clients.get(PRINCIPAL)
        if client is None:
            return {"status": "unhealthy", "error": "Redis client not connected"}

        try:
            await client.ping()
        except RedisError as e:
            logger.warning(f"Redis health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}

        return {"status": "healthy"}
