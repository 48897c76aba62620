"""
AttachmentService - Registro y eliminación de adjuntos de una remisión.

El archivo ya fue subido al almacén externo; aquí solo se valida y se
registra su referencia. Registrar o eliminar nunca cambia el estado: la
respuesta incluye el estado sugerido para que el usuario decida.
"""
import logging

from backend.exceptions import AdjuntoInvalidoError
from backend.models.audit import AuditEntry
from backend.models.enums import AccionAuditoria, TipoAdjunto
from backend.models.remision import AdjuntoMetadata, AdjuntoResponse, RegistrarAdjuntoRequest
from backend.repositories.remision_repository import RemisionRepository
from backend.services.remision_state_service import suggest_transition
from backend.services.validation_service import ValidationService
from backend.utils.date_formatter import now_colombia

logger = logging.getLogger(__name__)


class AttachmentService:
    """Mutaciones del mapa de adjuntos con historial y verificación de versión."""

    def __init__(self, repository: RemisionRepository, validation_service: ValidationService):
        self.repository = repository
        self.validation_service = validation_service

    async def registrar(
        self,
        remision_id: str,
        tipo: TipoAdjunto,
        request: RegistrarAdjuntoRequest
    ) -> AdjuntoResponse:
        """
        Registra (o reemplaza) el adjunto de un tipo.

        Raises:
            RemisionNoEncontradaError: Si la remisión no existe
            AdjuntoInvalidoError: Si el archivo no cumple las reglas del tipo
            ConcurrentModificationError: Si otra escritura ganó la carrera
        """
        self.validation_service.validar_adjunto(tipo, request.media_type, request.size)
        remision = await self.repository.read(remision_id)

        reemplazo = remision.tiene_adjunto(tipo)
        adjunto = AdjuntoMetadata(
            url=request.url,
            name=request.name,
            media_type=request.media_type.lower(),
            size=request.size,
            uploaded_by=request.actor,
            uploaded_at=now_colombia()
        )
        adjuntos = {**remision.adjuntos, tipo: adjunto}

        details = f"{tipo.etiqueta}: {request.name}"
        if reemplazo:
            details += f" (reemplaza {remision.adjuntos[tipo].name})"

        entry = AuditEntry(
            remision_id=remision_id,
            actor=request.actor,
            action=AccionAuditoria.ADJUNTO_SUBIDO,
            details=details,
            previous_state=remision.estado,
            new_state=remision.estado
        )

        actualizada = await self.repository.write(
            remision_id,
            {"adjuntos": adjuntos},
            expected_version=remision.version,
            audit_entry=entry
        )

        sugerido = suggest_transition(actualizada)
        logger.info(
            f"Adjunto registrado | Remisión: {remision_id} | {tipo.value} | "
            f"Sugerido: {sugerido.value if sugerido else None}"
        )
        return AdjuntoResponse(remision=actualizada, sugerido=sugerido)

    async def eliminar(self, remision_id: str, tipo: TipoAdjunto, actor: str) -> AdjuntoResponse:
        """
        Elimina la referencia al adjunto de un tipo.

        Raises:
            RemisionNoEncontradaError: Si la remisión no existe
            AdjuntoInvalidoError: Si la remisión no tiene adjunto de ese tipo
            ConcurrentModificationError: Si otra escritura ganó la carrera
        """
        remision = await self.repository.read(remision_id)

        if not remision.tiene_adjunto(tipo):
            raise AdjuntoInvalidoError(
                tipo=tipo.value,
                motivo=f"La remisión no tiene {tipo.etiqueta.lower()} adjunto"
            )

        adjuntos = {k: v for k, v in remision.adjuntos.items() if k is not tipo}
        entry = AuditEntry(
            remision_id=remision_id,
            actor=actor,
            action=AccionAuditoria.ADJUNTO_ELIMINADO,
            details=f"{tipo.etiqueta}: {remision.adjuntos[tipo].name}",
            previous_state=remision.estado,
            new_state=remision.estado
        )

        actualizada = await self.repository.write(
            remision_id,
            {"adjuntos": adjuntos},
            expected_version=remision.version,
            audit_entry=entry
        )

        logger.info(f"Adjunto eliminado | Remisión: {remision_id} | {tipo.value}")
        return AdjuntoResponse(remision=actualizada, sugerido=suggest_transition(actualizada))
