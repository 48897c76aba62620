"""
Modelo Pydantic para el historial de remisiones (append-only).

Cada entrada registra un cambio de estado o una mutación de adjuntos.
Las entradas son inmutables: nunca se modifican ni se eliminan.
"""
from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field

from backend.models.enums import AccionAuditoria, EstadoRemision
from backend.utils.date_formatter import now_colombia


class AuditEntry(BaseModel):
    """Entrada del historial de una remisión."""
    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="UUID único de la entrada"
    )
    remision_id: str = Field(..., min_length=1)
    actor: str = Field(..., min_length=1, description="Usuario que realizó la acción")
    action: AccionAuditoria
    details: str = Field("", description="Descripción legible del cambio")
    previous_state: Optional[EstadoRemision] = None
    new_state: Optional[EstadoRemision] = None
    timestamp: datetime = Field(default_factory=now_colombia)

    model_config = ConfigDict(
        frozen=True,  # Inmutable (append-only)
        json_schema_extra={
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "remision_id": "rem-001",
                "actor": "auxiliar@empresa.co",
                "action": "Cambio de estado",
                "details": "Estado cambiado de PENDIENTE a CANCELADO - Justificación: cliente desiste",
                "previous_state": "PENDIENTE",
                "new_state": "CANCELADO",
                "timestamp": "2026-03-02T09:15:00-05:00"
            }
        }
    )
