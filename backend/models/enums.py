"""
Enumeraciones para el motor de Remisiones.

Define los estados del flujo, los tipos de adjunto y las acciones auditadas.
"""
from enum import Enum


class EstadoRemision(str, Enum):
    """
    Estados posibles de una remisión.

    Flujo principal: GENERADO → PENDIENTE → (PROFORMA) → RADICADO → FACTURADO
    Estados especiales (requieren justificación, pueden reabrir el flujo):
    CANCELADO, CORTESIA, GARANTIA, SIN_VINCULAR
    FACTURADO es terminal.
    """
    GENERADO = "GENERADO"
    PENDIENTE = "PENDIENTE"
    PROFORMA = "PROFORMA"
    RADICADO = "RADICADO"
    FACTURADO = "FACTURADO"
    CANCELADO = "CANCELADO"
    CORTESIA = "CORTESIA"
    GARANTIA = "GARANTIA"
    SIN_VINCULAR = "SIN_VINCULAR"

    @property
    def requiere_justificacion(self) -> bool:
        return self in ESTADOS_CON_JUSTIFICACION


ESTADOS_CON_JUSTIFICACION = frozenset({
    EstadoRemision.CANCELADO,
    EstadoRemision.CORTESIA,
    EstadoRemision.GARANTIA,
    EstadoRemision.SIN_VINCULAR,
})


class TipoAdjunto(str, Enum):
    """
    Roles fijos de documentos de evidencia de una remisión.

    El orden de declaración es el orden de consolidación.
    """
    ORDEN_TRABAJO = "orden_trabajo"
    REMISION_ESCANEADA = "remision_escaneada"
    INFORME_TECNICO = "informe_tecnico"

    @property
    def etiqueta(self) -> str:
        return ETIQUETAS_ADJUNTO[self]


ETIQUETAS_ADJUNTO = {
    TipoAdjunto.ORDEN_TRABAJO: "Orden de trabajo",
    TipoAdjunto.REMISION_ESCANEADA: "Remisión escaneada",
    TipoAdjunto.INFORME_TECNICO: "Informe técnico",
}

# Orden fijo del PDF consolidado (no configurable)
ORDEN_CONSOLIDACION: tuple[TipoAdjunto, ...] = (
    TipoAdjunto.ORDEN_TRABAJO,
    TipoAdjunto.REMISION_ESCANEADA,
    TipoAdjunto.INFORME_TECNICO,
)


MEDIA_TYPE_PDF = "application/pdf"
MEDIA_TYPES_IMAGEN = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})
EXTENSIONES_IMAGEN = frozenset({"jpg", "jpeg", "png", "webp"})

# Tipos de archivo aceptados al registrar cada adjunto
MEDIA_TYPES_PERMITIDOS: dict[TipoAdjunto, frozenset[str]] = {
    TipoAdjunto.ORDEN_TRABAJO: frozenset({MEDIA_TYPE_PDF}),
    TipoAdjunto.REMISION_ESCANEADA: frozenset({MEDIA_TYPE_PDF}) | MEDIA_TYPES_IMAGEN,
    TipoAdjunto.INFORME_TECNICO: frozenset({MEDIA_TYPE_PDF}) | MEDIA_TYPES_IMAGEN,
}


class AccionAuditoria(str, Enum):
    """Acciones registradas en el historial de remisiones."""
    CREACION = "Remisión creada"
    CAMBIO_ESTADO = "Cambio de estado"
    ADJUNTO_SUBIDO = "Adjunto subido"
    ADJUNTO_ELIMINADO = "Adjunto eliminado"
