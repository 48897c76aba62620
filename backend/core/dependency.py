"""
Dependency Injection para FastAPI.

Estrategia:
- Singletons: ValidationService, HttpAttachmentStore
  - Razón: stateless / comparten el pool de conexiones HTTP
- Nuevas instancias por request: RemisionRepository y los servicios que lo usan
  - Reciben el cliente Redis conectado en el evento startup

Testability:
- Sobreescribir factory functions con app.dependency_overrides

Usage en routers:
    from backend.core.dependency import get_remision_state_service
    from fastapi import Depends

    @router.post("/remisiones/{remision_id}/estado")
    async def cambiar_estado(
        remision_id: str,
        request: CambioEstadoRequest,
        state_service: RemisionStateService = Depends(get_remision_state_service)
    ):
        return await state_service.transition_con_reintento(...)
"""

from typing import Optional
from fastapi import Depends

from backend.exceptions import RepositoryConnectionError
from backend.repositories.attachment_store import HttpAttachmentStore
from backend.repositories.redis_repository import RedisRepository
from backend.repositories.remision_repository import RemisionRepository
from backend.services.attachment_service import AttachmentService
from backend.services.document_assembler import DocumentAssembler
from backend.services.remision_state_service import RemisionStateService
from backend.services.validation_service import ValidationService


# ============================================================================
# SINGLETONS - Instancias compartidas por toda la aplicación
# ============================================================================

_validation_service_singleton: Optional[ValidationService] = None
_attachment_store_singleton: Optional[HttpAttachmentStore] = None


# ============================================================================
# FACTORY FUNCTIONS - Singletons
# ============================================================================


def get_validation_service() -> ValidationService:
    """
    Factory para ValidationService (singleton, stateless).

    Usage:
        validation_service: ValidationService = Depends(get_validation_service)
    """
    global _validation_service_singleton

    if _validation_service_singleton is None:
        _validation_service_singleton = ValidationService()

    return _validation_service_singleton


def get_attachment_store() -> HttpAttachmentStore:
    """
    Factory para HttpAttachmentStore (singleton).

    Un solo httpx.AsyncClient por app para reutilizar conexiones; se cierra
    en el evento shutdown (close_attachment_store).
    """
    global _attachment_store_singleton

    if _attachment_store_singleton is None:
        _attachment_store_singleton = HttpAttachmentStore()

    return _attachment_store_singleton


async def close_attachment_store() -> None:
    global _attachment_store_singleton

    if _attachment_store_singleton is not None:
        await _attachment_store_singleton.aclose()
        _attachment_store_singleton = None


# ============================================================================
# FACTORY FUNCTIONS - Nuevas Instancias con Dependencias Inyectadas
# ============================================================================


def get_remision_repository() -> RemisionRepository:
    """
    Factory para RemisionRepository.

    Raises:
        RepositoryConnectionError: Si Redis aún no está conectado (503)
    """
    client = RedisRepository().get_client()
    if client is None:
        raise RepositoryConnectionError("Redis no conectado")
    return RemisionRepository(client)


def get_remision_state_service(
    repository: RemisionRepository = Depends(get_remision_repository),
    validation_service: ValidationService = Depends(get_validation_service)
) -> RemisionStateService:
    return RemisionStateService(repository=repository, validation_service=validation_service)


def get_attachment_service(
    repository: RemisionRepository = Depends(get_remision_repository),
    validation_service: ValidationService = Depends(get_validation_service)
) -> AttachmentService:
    return AttachmentService(repository=repository, validation_service=validation_service)


def get_document_assembler(
    store: HttpAttachmentStore = Depends(get_attachment_store)
) -> DocumentAssembler:
    return DocumentAssembler(store=store)


# ============================================================================
# UTILITY FUNCTIONS - Para testing
# ============================================================================


def reset_singletons() -> None:
    """
    Resetea todos los singletons a None.

    WARNING: NO usar en producción. Solo para tests.
    """
    global _validation_service_singleton, _attachment_store_singleton

    _validation_service_singleton = None
    _attachment_store_singleton = None
