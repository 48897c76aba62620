"""
Repositorio de remisiones sobre Redis.

Layout de claves:
- remision:{id}            JSON de la remisión (Remision.model_dump_json)
- remision:{id}:historial  Lista append-only de AuditEntry (RPUSH)
- remisiones               Set con los IDs existentes

Cada escritura regenera `version` (UUID4) y se ejecuta en una transacción
WATCH/MULTI/EXEC junto con la entrada de historial y el PUBLISH del evento
de cambio. Si otro proceso modificó la remisión entre la lectura y el EXEC,
la escritura falla con ConcurrentModificationError y no se aplica nada.

No existe operación de borrado: las remisiones nunca se eliminan.
"""
import logging
import uuid
from typing import Any, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from backend.exceptions import (
    ConcurrentModificationError,
    RemisionNoEncontradaError,
    RepositoryConnectionError
)
from backend.models.audit import AuditEntry
from backend.models.enums import AccionAuditoria, EstadoRemision
from backend.models.remision import Remision
from backend.services.redis_event_service import (
    CHANNEL,
    EVENT_CREATED,
    EVENT_UPDATE,
    build_remision_event
)
from backend.utils.date_formatter import now_colombia

logger = logging.getLogger(__name__)

INDEX_KEY = "remisiones"


def remision_key(remision_id: str) -> str:
    return f"remision:{remision_id}"


def historial_key(remision_id: str) -> str:
    return f"remision:{remision_id}:historial"


class RemisionRepository:
    """
    Acceso a remisiones e historial en Redis con optimistic locking.

    Attributes:
        redis: Cliente async (decode_responses=True)
    """

    def __init__(self, redis_client: aioredis.Redis):
        self.redis = redis_client

    async def read(self, remision_id: str) -> Remision:
        """
        Lee una remisión por ID.

        Raises:
            RemisionNoEncontradaError: Si no existe
            RepositoryConnectionError: Si Redis no responde
        """
        try:
            raw = await self.redis.get(remision_key(remision_id))
        except RedisError as e:
            logger.error(f"❌ Redis read failed for {remision_id}: {e}")
            raise RepositoryConnectionError("lectura de remisión", details=str(e)) from e

        if raw is None:
            raise RemisionNoEncontradaError(remision_id)

        return Remision.model_validate_json(raw)

    async def create(self, remision: Remision, actor: str) -> Remision:
        """
        Persiste una remisión nueva en estado GENERADO.

        El estado recibido se ignora: toda remisión nace en GENERADO. Se
        registra la entrada de historial de creación en la misma transacción.

        Returns:
            Remision: Con id, version, created_at y updated_at asignados
        """
        ahora = now_colombia()
        nueva = remision.model_copy(update={
            "id": remision.id or str(uuid.uuid4()),
            "estado": EstadoRemision.GENERADO,
            "justificacion_estado": None,
            "fecha_radicacion": None,
            "fecha_facturacion": None,
            "version": str(uuid.uuid4()),
            "created_at": ahora,
            "updated_at": ahora,
        })

        entry = AuditEntry(
            remision_id=nueva.id,
            actor=actor,
            action=AccionAuditoria.CREACION,
            details=f"Remisión {nueva.remision} creada",
            new_state=EstadoRemision.GENERADO,
            timestamp=ahora
        )

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.set(remision_key(nueva.id), nueva.model_dump_json())
                pipe.sadd(INDEX_KEY, nueva.id)
                pipe.rpush(historial_key(nueva.id), entry.model_dump_json())
                pipe.publish(CHANNEL, build_remision_event(EVENT_CREATED, nueva, entry))
                await pipe.execute()
        except RedisError as e:
            logger.error(f"❌ Redis create failed for {nueva.remision}: {e}")
            raise RepositoryConnectionError("creación de remisión", details=str(e)) from e

        logger.info(f"✅ Remisión created | ID: {nueva.id} | Código: {nueva.remision}")
        return nueva

    async def write(
        self,
        remision_id: str,
        patch: dict[str, Any],
        expected_version: Optional[str],
        audit_entry: Optional[AuditEntry] = None
    ) -> Remision:
        """
        Aplica un patch parcial de forma atómica con verificación de versión.

        Flow:
        1. WATCH remision:{id}
        2. Leer y comparar version con expected_version
        3. MULTI: SET remisión + RPUSH historial + PUBLISH evento
        4. EXEC (falla si la clave cambió desde el WATCH)

        Args:
            remision_id: ID de la remisión
            patch: Campos a actualizar ({campo: valor})
            expected_version: Versión leída por el llamador
            audit_entry: Entrada de historial a agregar en la misma transacción

        Returns:
            Remision: Estado resultante con la nueva versión

        Raises:
            RemisionNoEncontradaError: Si no existe
            ConcurrentModificationError: Si la versión no coincide o el EXEC fue abortado
            RepositoryConnectionError: Si Redis no responde
        """
        key = remision_key(remision_id)

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)

                raw = await pipe.get(key)
                if raw is None:
                    raise RemisionNoEncontradaError(remision_id)

                actual = Remision.model_validate_json(raw)
                if actual.version != expected_version:
                    logger.warning(
                        f"Version mismatch | Remisión: {remision_id} | "
                        f"Expected: {expected_version} | Actual: {actual.version}"
                    )
                    raise ConcurrentModificationError(remision_id, expected_version, actual.version)

                datos = actual.model_dump()
                datos.update(patch)
                datos["version"] = str(uuid.uuid4())
                datos["updated_at"] = now_colombia()
                actualizada = Remision.model_validate(datos)

                pipe.multi()
                pipe.set(key, actualizada.model_dump_json())
                if audit_entry is not None:
                    pipe.rpush(historial_key(remision_id), audit_entry.model_dump_json())
                pipe.publish(CHANNEL, build_remision_event(EVENT_UPDATE, actualizada, audit_entry))
                await pipe.execute()

        except WatchError as e:
            logger.warning(f"⚠️ Concurrent write detected on {remision_id} (WATCH aborted)")
            raise ConcurrentModificationError(remision_id, expected_version, None) from e
        except RedisError as e:
            logger.error(f"❌ Redis write failed for {remision_id}: {e}")
            raise RepositoryConnectionError("escritura de remisión", details=str(e)) from e

        logger.info(
            f"Remisión written | ID: {remision_id} | Campos: {sorted(patch)} | "
            f"Version: {actualizada.version}"
        )
        return actualizada

    async def append_audit(self, entry: AuditEntry) -> None:
        """Agrega una entrada al historial sin modificar la remisión."""
        try:
            await self.redis.rpush(historial_key(entry.remision_id), entry.model_dump_json())
        except RedisError as e:
            logger.error(f"❌ Redis audit append failed for {entry.remision_id}: {e}")
            raise RepositoryConnectionError("escritura de historial", details=str(e)) from e

    async def get_audit(self, remision_id: str) -> list[AuditEntry]:
        """Historial de la remisión en orden cronológico."""
        try:
            entradas = await self.redis.lrange(historial_key(remision_id), 0, -1)
        except RedisError as e:
            logger.error(f"❌ Redis audit read failed for {remision_id}: {e}")
            raise RepositoryConnectionError("lectura de historial", details=str(e)) from e

        return [AuditEntry.model_validate_json(raw) for raw in entradas]

    async def list_ids(self) -> list[str]:
        try:
            ids = await self.redis.smembers(INDEX_KEY)
        except RedisError as e:
            logger.error(f"❌ Redis index read failed: {e}")
            raise RepositoryConnectionError("listado de remisiones", details=str(e)) from e

        return sorted(ids)
