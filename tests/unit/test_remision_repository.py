"""
Unit tests for RemisionRepository (Redis WATCH/MULTI with mocked client).
"""
import json
import pytest
from unittest.mock import AsyncMock, MagicMock, Mock
from redis.exceptions import ConnectionError as RedisConnectionError, WatchError

from backend.exceptions import (
    ConcurrentModificationError,
    RemisionNoEncontradaError,
    RepositoryConnectionError
)
from backend.models.audit import AuditEntry
from backend.models.enums import AccionAuditoria, EstadoRemision
from backend.models.remision import Remision
from backend.repositories.remision_repository import RemisionRepository


@pytest.fixture
def remision_guardada():
    return Remision(
        id="rem-001",
        remision="REM-2031",
        no_orden="OT-445",
        movil="M-12",
        estado=EstadoRemision.PENDIENTE,
        version="v1"
    )


@pytest.fixture
def mock_pipe(remision_guardada):
    pipe = MagicMock()
    pipe.watch = AsyncMock()
    pipe.get = AsyncMock(return_value=remision_guardada.model_dump_json())
    pipe.multi = Mock()
    pipe.set = Mock()
    pipe.sadd = Mock()
    pipe.rpush = Mock()
    pipe.publish = Mock()
    pipe.execute = AsyncMock(return_value=[True, 1, 0])
    return pipe


@pytest.fixture
def mock_redis(mock_pipe):
    redis = MagicMock()
    contexto = MagicMock()
    contexto.__aenter__ = AsyncMock(return_value=mock_pipe)
    contexto.__aexit__ = AsyncMock(return_value=False)
    redis.pipeline = Mock(return_value=contexto)
    redis.get = AsyncMock()
    redis.rpush = AsyncMock()
    redis.lrange = AsyncMock(return_value=[])
    redis.smembers = AsyncMock(return_value=set())
    return redis


@pytest.fixture
def repository(mock_redis):
    return RemisionRepository(mock_redis)


def cambio_estado_entry() -> AuditEntry:
    return AuditEntry(
        remision_id="rem-001",
        actor="auxiliar@empresa.co",
        action=AccionAuditoria.CAMBIO_ESTADO,
        details="Estado cambiado de PENDIENTE a RADICADO",
        previous_state=EstadoRemision.PENDIENTE,
        new_state=EstadoRemision.RADICADO
    )


# ==================== READ ====================


@pytest.mark.asyncio
async def test_read_returns_remision(repository, mock_redis, remision_guardada):
    mock_redis.get.return_value = remision_guardada.model_dump_json()

    remision = await repository.read("rem-001")

    mock_redis.get.assert_awaited_once_with("remision:rem-001")
    assert remision == remision_guardada


@pytest.mark.asyncio
async def test_read_missing_raises_not_found(repository, mock_redis):
    mock_redis.get.return_value = None

    with pytest.raises(RemisionNoEncontradaError):
        await repository.read("rem-404")


@pytest.mark.asyncio
async def test_read_connection_error_is_wrapped(repository, mock_redis):
    mock_redis.get.side_effect = RedisConnectionError("connection refused")

    with pytest.raises(RepositoryConnectionError) as exc_info:
        await repository.read("rem-001")

    assert exc_info.value.error_code == "REPOSITORY_CONNECTION_ERROR"


# ==================== WRITE ====================


@pytest.mark.asyncio
async def test_write_commits_state_audit_and_event_in_one_transaction(repository, mock_pipe):
    entry = cambio_estado_entry()

    actualizada = await repository.write(
        "rem-001",
        {"estado": EstadoRemision.RADICADO},
        expected_version="v1",
        audit_entry=entry
    )

    assert actualizada.estado is EstadoRemision.RADICADO
    assert actualizada.version != "v1"
    assert actualizada.updated_at is not None

    mock_pipe.watch.assert_awaited_once_with("remision:rem-001")
    mock_pipe.multi.assert_called_once()

    key, valor = mock_pipe.set.call_args[0]
    assert key == "remision:rem-001"
    assert json.loads(valor)["estado"] == "RADICADO"

    mock_pipe.rpush.assert_called_once_with("remision:rem-001:historial", entry.model_dump_json())

    canal, mensaje = mock_pipe.publish.call_args[0]
    evento = json.loads(mensaje)
    assert canal == "remisiones:updates"
    assert evento["event_type"] == "REMISION_UPDATE"
    assert evento["estado"] == "RADICADO"
    assert evento["version"] == actualizada.version
    assert evento["action"] == "Cambio de estado"

    mock_pipe.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_write_version_mismatch_raises_before_multi(repository, mock_pipe):
    with pytest.raises(ConcurrentModificationError) as exc_info:
        await repository.write("rem-001", {"estado": EstadoRemision.RADICADO}, expected_version="v0")

    assert exc_info.value.data["expected_version"] == "v0"
    assert exc_info.value.data["actual_version"] == "v1"
    mock_pipe.multi.assert_not_called()
    mock_pipe.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_write_watch_abort_raises_concurrent_modification(repository, mock_pipe):
    mock_pipe.execute.side_effect = WatchError("Watched variable changed.")

    with pytest.raises(ConcurrentModificationError):
        await repository.write("rem-001", {"estado": EstadoRemision.RADICADO}, expected_version="v1")


@pytest.mark.asyncio
async def test_write_missing_remision_raises_not_found(repository, mock_pipe):
    mock_pipe.get.return_value = None

    with pytest.raises(RemisionNoEncontradaError):
        await repository.write("rem-001", {"estado": EstadoRemision.RADICADO}, expected_version="v1")


@pytest.mark.asyncio
async def test_write_without_audit_entry_skips_rpush(repository, mock_pipe):
    await repository.write("rem-001", {"movil": "M-13"}, expected_version="v1")

    mock_pipe.rpush.assert_not_called()
    mock_pipe.publish.assert_called_once()


# ==================== CREATE / HISTORIAL ====================


@pytest.mark.asyncio
async def test_create_forces_generado_and_indexes(repository, mock_pipe):
    nueva = await repository.create(
        Remision(remision="REM-9", estado=EstadoRemision.FACTURADO),
        actor="auxiliar@empresa.co"
    )

    assert nueva.estado is EstadoRemision.GENERADO
    assert nueva.id and nueva.version and nueva.created_at
    mock_pipe.sadd.assert_called_once_with("remisiones", nueva.id)

    entrada = json.loads(mock_pipe.rpush.call_args[0][1])
    assert entrada["action"] == "Remisión creada"
    assert entrada["new_state"] == "GENERADO"


@pytest.mark.asyncio
async def test_get_audit_parses_entries_in_order(repository, mock_redis):
    primera = cambio_estado_entry()
    segunda = AuditEntry(
        remision_id="rem-001",
        actor="jefe@empresa.co",
        action=AccionAuditoria.ADJUNTO_SUBIDO,
        details="Informe técnico: inf.pdf"
    )
    mock_redis.lrange.return_value = [primera.model_dump_json(), segunda.model_dump_json()]

    historial = await repository.get_audit("rem-001")

    mock_redis.lrange.assert_awaited_once_with("remision:rem-001:historial", 0, -1)
    assert [entry.id for entry in historial] == [primera.id, segunda.id]


@pytest.mark.asyncio
async def test_append_audit_pushes_to_history(repository, mock_redis):
    entry = cambio_estado_entry()

    await repository.append_audit(entry)

    mock_redis.rpush.assert_awaited_once_with("remision:rem-001:historial", entry.model_dump_json())


@pytest.mark.asyncio
async def test_list_ids_sorted(repository, mock_redis):
    mock_redis.smembers.return_value = {"rem-b", "rem-a"}

    assert await repository.list_ids() == ["rem-a", "rem-b"]
