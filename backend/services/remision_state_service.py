"""
RemisionStateService - Orquestador de cambios de estado de remisiones.

Flow de transition():
1. Leer la remisión del repositorio
2. Validar reglas de negocio (ValidationService)
3. Disparar el evento `cambiar` de RemisionStateMachine (calcula el patch)
4. Escribir patch + entrada de historial en una sola transacción con
   verificación de versión

Las consultas suggest_transition() y available_transitions() son puras:
no leen ni escriben el repositorio.
"""
import logging
from typing import Optional

from statemachine.exceptions import TransitionNotAllowed
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential
)

from backend.config import config
from backend.domain.state_machines.remision_machine import (
    RemisionStateMachine,
    TRANSICIONES_PERMITIDAS
)
from backend.exceptions import ConcurrentModificationError, InvalidTransitionError
from backend.models.audit import AuditEntry
from backend.models.enums import AccionAuditoria, EstadoRemision, TipoAdjunto
from backend.models.remision import Remision
from backend.repositories.remision_repository import RemisionRepository
from backend.services.validation_service import ValidationService
from backend.utils.date_formatter import now_colombia

logger = logging.getLogger(__name__)


def suggest_transition(remision: Remision) -> Optional[EstadoRemision]:
    """
    Estado sugerido según los adjuntos presentes. Nunca se aplica solo.

    - GENERADO → PENDIENTE si hay orden de trabajo o remisión escaneada
    - PENDIENTE → RADICADO si hay ambas
    - En cualquier otro caso, None
    """
    tiene_orden = remision.tiene_adjunto(TipoAdjunto.ORDEN_TRABAJO)
    tiene_escaneada = remision.tiene_adjunto(TipoAdjunto.REMISION_ESCANEADA)

    if remision.estado is EstadoRemision.GENERADO and (tiene_orden or tiene_escaneada):
        return EstadoRemision.PENDIENTE

    if remision.estado is EstadoRemision.PENDIENTE and tiene_orden and tiene_escaneada:
        return EstadoRemision.RADICADO

    return None


def available_transitions(remision: Remision) -> list[EstadoRemision]:
    """Estados destino permitidos desde el estado actual."""
    return list(TRANSICIONES_PERMITIDAS[remision.estado])


def detalle_cambio_estado(
    anterior: EstadoRemision,
    nuevo: EstadoRemision,
    justificacion: Optional[str]
) -> str:
    """
    Examples:
        >>> detalle_cambio_estado(EstadoRemision.PENDIENTE, EstadoRemision.CANCELADO, " desiste ")
        'Estado cambiado de PENDIENTE a CANCELADO - Justificación: desiste'
    """
    detalle = f"Estado cambiado de {anterior.value} a {nuevo.value}"
    if justificacion and justificacion.strip():
        detalle += f" - Justificación: {justificacion.strip()}"
    return detalle


class RemisionStateService:
    """
    Servicio de cambios de estado.

    Attributes:
        repository: Almacén de remisiones con optimistic locking
        validation_service: Reglas de transición y justificación
    """

    def __init__(
        self,
        repository: RemisionRepository,
        validation_service: ValidationService,
        max_attempts: Optional[int] = None
    ):
        self.repository = repository
        self.validation_service = validation_service
        self.max_attempts = max_attempts or config.CONFLICT_MAX_ATTEMPTS
        logger.info("RemisionStateService initialized")

    async def transition(
        self,
        remision_id: str,
        destino: EstadoRemision,
        justificacion: Optional[str],
        actor: str
    ) -> Remision:
        """
        Cambia el estado de una remisión.

        Args:
            remision_id: ID de la remisión
            destino: Estado destino
            justificacion: Obligatoria (no vacía) para estados especiales
            actor: Usuario que ejecuta el cambio

        Returns:
            Remision: Estado persistido tras el cambio

        Raises:
            RemisionNoEncontradaError: Si la remisión no existe
            InvalidTransitionError: Si el destino no está permitido
            MissingJustificationError: Si falta la justificación
            ConcurrentModificationError: Si otra escritura ganó la carrera
        """
        logger.info(f"RemisionStateService.transition: {remision_id} -> {destino.value} by {actor}")

        remision = await self.repository.read(remision_id)
        self.validation_service.validar_transicion(remision, destino, justificacion)

        anterior = remision.estado
        machine = RemisionStateMachine(remision)
        try:
            machine.send(
                "cambiar",
                destino=destino.value,
                justificacion=justificacion,
                momento=now_colombia()
            )
        except TransitionNotAllowed as e:
            raise InvalidTransitionError(
                remision_id=remision_id,
                estado_actual=anterior.value,
                estado_destino=destino.value,
                permitidos=[estado.value for estado in available_transitions(remision)]
            ) from e

        entry = AuditEntry(
            remision_id=remision_id,
            actor=actor,
            action=AccionAuditoria.CAMBIO_ESTADO,
            details=detalle_cambio_estado(anterior, destino, justificacion),
            previous_state=anterior,
            new_state=machine.get_estado()
        )

        actualizada = await self.repository.write(
            remision_id,
            machine.cambios,
            expected_version=remision.version,
            audit_entry=entry
        )

        logger.info(f"✅ Remisión {remision_id}: {anterior.value} -> {actualizada.estado.value}")
        return actualizada

    async def transition_con_reintento(
        self,
        remision_id: str,
        destino: EstadoRemision,
        justificacion: Optional[str],
        actor: str
    ) -> Remision:
        """
        transition() con reintento ante ConcurrentModificationError.

        Cada intento vuelve a leer la remisión y re-ejecuta la validación, de
        modo que un cambio concurrente que invalide la transición termina en
        InvalidTransitionError en lugar de sobrescribirse. Los demás errores
        no se reintentan.
        """
        resultado: Optional[Remision] = None

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.1, max=1),
            retry=retry_if_exception_type(ConcurrentModificationError),
            reraise=True
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"Retrying transition for {remision_id} "
                        f"(attempt {attempt.retry_state.attempt_number}/{self.max_attempts})"
                    )
                resultado = await self.transition(remision_id, destino, justificacion, actor)

        return resultado
