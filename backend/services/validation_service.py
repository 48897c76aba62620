"""
Servicio de validación de reglas de negocio para remisiones.

Lógica pura de validación sin dependencias externas. Enforces:
- Transiciones permitidas según la tabla de adyacencia de la máquina de estados
- FACTURADO solo desde RADICADO (regla explícita)
- Justificación obligatoria para estados especiales
- Formato y tamaño de adjuntos según su tipo
"""
import logging
from typing import Optional

from backend.config import config
from backend.domain.state_machines.remision_machine import TRANSICIONES_PERMITIDAS
from backend.models.enums import (
    EstadoRemision,
    MEDIA_TYPES_PERMITIDOS,
    TipoAdjunto
)
from backend.models.remision import Remision
from backend.exceptions import (
    AdjuntoInvalidoError,
    InvalidTransitionError,
    MissingJustificationError
)

logger = logging.getLogger(__name__)


class ValidationService:
    """
    Servicio de validación pura de reglas de negocio.

    Opera sobre el objeto Remision ya leído; no accede al repositorio.
    """

    def __init__(self, max_adjunto_bytes: Optional[int] = None):
        self.max_adjunto_bytes = max_adjunto_bytes or config.MAX_ADJUNTO_BYTES

    def validar_transicion(
        self,
        remision: Remision,
        destino: EstadoRemision,
        justificacion: Optional[str] = None
    ) -> None:
        """
        Valida si la remisión puede pasar al estado destino.

        Orden de validación:
        1. FACTURADO es terminal (sin transiciones de salida)
        2. FACTURADO solo se alcanza desde RADICADO
        3. El destino pertenece a los permitidos del estado actual
        4. Estados especiales requieren justificación no vacía

        Args:
            remision: Remisión con su estado actual
            destino: Estado destino solicitado
            justificacion: Texto libre; obligatorio para estados especiales

        Raises:
            InvalidTransitionError: Si la transición no está permitida
            MissingJustificationError: Si falta la justificación requerida
        """
        actual = remision.estado
        permitidos = TRANSICIONES_PERMITIDAS[actual]

        logger.info(
            f"Validating transition | Remisión: {remision.id} | {actual.value} -> {destino.value}"
        )

        if actual is EstadoRemision.FACTURADO:
            logger.error(f"Transition from terminal state | Remisión: {remision.id}")
            raise InvalidTransitionError(
                remision_id=remision.id,
                estado_actual=actual.value,
                estado_destino=destino.value,
                motivo="No se puede cambiar el estado desde FACTURADO"
            )

        if destino is EstadoRemision.FACTURADO and actual is not EstadoRemision.RADICADO:
            logger.error(
                f"FACTURADO requires RADICADO | Remisión: {remision.id} | Actual: {actual.value}"
            )
            raise InvalidTransitionError(
                remision_id=remision.id,
                estado_actual=actual.value,
                estado_destino=destino.value,
                motivo="Solo se puede facturar desde estado RADICADO",
                permitidos=[estado.value for estado in permitidos]
            )

        if destino not in permitidos:
            logger.error(
                f"Transition not allowed | Remisión: {remision.id} | "
                f"{actual.value} -> {destino.value} | Permitidos: {[e.value for e in permitidos]}"
            )
            raise InvalidTransitionError(
                remision_id=remision.id,
                estado_actual=actual.value,
                estado_destino=destino.value,
                permitidos=[estado.value for estado in permitidos]
            )

        if destino.requiere_justificacion and not (justificacion or "").strip():
            logger.error(
                f"Missing justification | Remisión: {remision.id} | Destino: {destino.value}"
            )
            raise MissingJustificationError(remision_id=remision.id, estado_destino=destino.value)

        logger.debug(f"Transition valid | Remisión: {remision.id} | {actual.value} -> {destino.value}")

    def validar_adjunto(self, tipo: TipoAdjunto, media_type: str, size: int) -> None:
        """
        Valida un archivo antes de registrarlo como adjunto.

        Reglas:
        - Tamaño máximo MAX_ADJUNTO_BYTES (10MB por defecto)
        - orden_trabajo: solo PDF
        - remision_escaneada / informe_tecnico: PDF o imagen (jpeg, jpg, png, webp)

        Raises:
            AdjuntoInvalidoError: Si el archivo no cumple las reglas del tipo
        """
        if size > self.max_adjunto_bytes:
            limite_mb = self.max_adjunto_bytes // (1024 * 1024)
            raise AdjuntoInvalidoError(
                tipo=tipo.value,
                motivo=f"El archivo no debe superar los {limite_mb}MB"
            )

        if media_type.lower() not in MEDIA_TYPES_PERMITIDOS[tipo]:
            if tipo is TipoAdjunto.ORDEN_TRABAJO:
                motivo = "La orden de trabajo debe ser un archivo PDF"
            elif tipo is TipoAdjunto.REMISION_ESCANEADA:
                motivo = "La remisión escaneada debe ser PDF, JPG, PNG o WEBP"
            else:
                motivo = "El informe técnico debe ser PDF o imagen"
            raise AdjuntoInvalidoError(tipo=tipo.value, motivo=motivo)
