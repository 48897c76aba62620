"""
Router de remisiones - estado, adjuntos, historial y PDF consolidado.

Endpoints:
- GET    /api/remisiones                              - IDs de remisiones
- POST   /api/remisiones                              - Crear remisión (GENERADO)
- GET    /api/remisiones/{id}                         - Remisión
- GET    /api/remisiones/{id}/transiciones            - Estados permitidos + sugerido
- POST   /api/remisiones/{id}/estado                  - Cambio de estado
- GET    /api/remisiones/{id}/historial               - Historial (append-only)
- PUT    /api/remisiones/{id}/adjuntos/{tipo}         - Registrar/reemplazar adjunto
- DELETE /api/remisiones/{id}/adjuntos/{tipo}         - Eliminar adjunto
- GET    /api/remisiones/{id}/consolidado/validacion  - Disponibilidad de adjuntos
- GET    /api/remisiones/{id}/consolidado             - PDF consolidado

Sin reglas de negocio: delega en los servicios. Los errores se propagan
como RemisionesException y los convierte el handler global de main.py.
"""
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response, status

from backend.core.dependency import (
    get_attachment_service,
    get_document_assembler,
    get_remision_repository,
    get_remision_state_service
)
from backend.models.audit import AuditEntry
from backend.models.consolidado import ConsolidadoOptions, ValidacionConsolidado
from backend.models.enums import TipoAdjunto
from backend.models.remision import (
    AdjuntoResponse,
    CambioEstadoRequest,
    CrearRemisionRequest,
    RegistrarAdjuntoRequest,
    Remision,
    TransicionesResponse
)
from backend.repositories.remision_repository import RemisionRepository
from backend.services.attachment_service import AttachmentService
from backend.services.document_assembler import (
    DocumentAssembler,
    validate_attachments_for_consolidation
)
from backend.services.remision_state_service import (
    RemisionStateService,
    available_transitions,
    suggest_transition
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/remisiones", response_model=list[str])
async def listar_remisiones(
    repository: RemisionRepository = Depends(get_remision_repository)
):
    """IDs de todas las remisiones registradas."""
    return await repository.list_ids()


@router.post("/remisiones", response_model=Remision, status_code=status.HTTP_201_CREATED)
async def crear_remision(
    request: CrearRemisionRequest,
    repository: RemisionRepository = Depends(get_remision_repository)
):
    """Crea una remisión en GENERADO con su entrada de historial de creación."""
    logger.info(f"POST /remisiones | {request.remision} by {request.actor}")
    return await repository.create(request.to_remision(), request.actor)


@router.get("/remisiones/{remision_id}", response_model=Remision)
async def get_remision(
    remision_id: str,
    repository: RemisionRepository = Depends(get_remision_repository)
):
    return await repository.read(remision_id)


@router.get("/remisiones/{remision_id}/transiciones", response_model=TransicionesResponse)
async def get_transiciones(
    remision_id: str,
    repository: RemisionRepository = Depends(get_remision_repository)
):
    """
    Estados a los que puede pasar la remisión y el sugerido según sus adjuntos.

    La sugerencia nunca se aplica automáticamente.
    """
    remision = await repository.read(remision_id)
    return TransicionesResponse(
        remision_id=remision_id,
        estado_actual=remision.estado,
        permitidos=available_transitions(remision),
        sugerido=suggest_transition(remision)
    )


@router.post("/remisiones/{remision_id}/estado", response_model=Remision)
async def cambiar_estado(
    remision_id: str,
    request: CambioEstadoRequest,
    state_service: RemisionStateService = Depends(get_remision_state_service)
):
    """
    Cambia el estado de una remisión.

    Errores:
    - 404 REMISION_NO_ENCONTRADA
    - 409 INVALID_TRANSITION (incluye FACTURADO desde un estado distinto a RADICADO)
    - 400 MISSING_JUSTIFICATION (CANCELADO, CORTESIA, GARANTIA, SIN_VINCULAR)
    - 409 CONCURRENT_MODIFICATION (tras agotar los reintentos)
    """
    logger.info(f"POST /remisiones/{remision_id}/estado -> {request.estado.value} by {request.actor}")
    return await state_service.transition_con_reintento(
        remision_id,
        request.estado,
        request.justificacion,
        request.actor
    )


@router.get("/remisiones/{remision_id}/historial", response_model=list[AuditEntry])
async def get_historial(
    remision_id: str,
    repository: RemisionRepository = Depends(get_remision_repository)
):
    await repository.read(remision_id)
    return await repository.get_audit(remision_id)


@router.put("/remisiones/{remision_id}/adjuntos/{tipo}", response_model=AdjuntoResponse)
async def registrar_adjunto(
    remision_id: str,
    tipo: TipoAdjunto,
    request: RegistrarAdjuntoRequest,
    attachment_service: AttachmentService = Depends(get_attachment_service)
):
    return await attachment_service.registrar(remision_id, tipo, request)


@router.delete("/remisiones/{remision_id}/adjuntos/{tipo}", response_model=AdjuntoResponse)
async def eliminar_adjunto(
    remision_id: str,
    tipo: TipoAdjunto,
    actor: str = Query(..., min_length=1),
    attachment_service: AttachmentService = Depends(get_attachment_service)
):
    return await attachment_service.eliminar(remision_id, tipo, actor)


@router.get(
    "/remisiones/{remision_id}/consolidado/validacion",
    response_model=ValidacionConsolidado
)
async def validar_consolidado(
    remision_id: str,
    repository: RemisionRepository = Depends(get_remision_repository)
):
    remision = await repository.read(remision_id)
    return validate_attachments_for_consolidation(remision)


@router.get("/remisiones/{remision_id}/consolidado")
async def descargar_consolidado(
    remision_id: str,
    incluir_portada: bool = Query(False),
    repository: RemisionRepository = Depends(get_remision_repository),
    assembler: DocumentAssembler = Depends(get_document_assembler)
):
    """
    PDF consolidado (orden de trabajo → remisión escaneada → informe técnico).

    Headers de respuesta:
    - Content-Disposition: attachment; filename="{no_orden}_{movil}.pdf"
    - X-Consolidado-Incluidos / X-Consolidado-Omitidos: tipos separados por coma
    - X-Consolidado-Motivos: pares tipo:motivo de los omitidos, percent-encoded
    - X-Consolidado-Paginas: total de páginas (portada incluida)
    - X-Consolidado-Advertencias: cantidad de advertencias

    Errores:
    - 422 NO_CONTENT_AVAILABLE si ningún adjunto aportó páginas
    """
    remision = await repository.read(remision_id)
    resultado = await assembler.assemble(remision, ConsolidadoOptions(include_cover=incluir_portada))

    headers = {
        "Content-Disposition": f'attachment; filename="{resultado.nombre_archivo}"',
        "X-Consolidado-Incluidos": ",".join(tipo.value for tipo in resultado.incluidos),
        "X-Consolidado-Omitidos": ",".join(omitido.tipo.value for omitido in resultado.omitidos),
        "X-Consolidado-Paginas": str(resultado.total_paginas),
        "X-Consolidado-Motivos": ",".join(
            quote(f"{omitido.tipo.value}:{omitido.motivo}", safe=":")
            for omitido in resultado.omitidos
        ),
        "X-Consolidado-Advertencias": str(len(resultado.advertencias)),
    }

    return Response(content=resultado.pdf_bytes, media_type="application/pdf", headers=headers)
