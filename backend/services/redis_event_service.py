"""
Eventos de cambio de remisiones para Redis pub/sub.

RemisionRepository publica estos mensajes dentro de la misma transacción
MULTI/EXEC que persiste el cambio, de modo que un suscriptor nunca ve un
evento sin el dato comprometido. El canal se consume en sse_service.

Payload:
    {
        "event_type": "REMISION_UPDATE",
        "remision_id": "rem-001",
        "estado": "RADICADO",
        "version": "7c9e6679-...",
        "action": "Cambio de estado",
        "actor": "auxiliar@empresa.co",
        "timestamp": "02/03/2026 09:15:00"
    }
"""
import json
import logging
from typing import Any, Optional

from backend.models.audit import AuditEntry
from backend.models.remision import Remision
from backend.utils.date_formatter import format_fecha_hora, now_colombia

logger = logging.getLogger(__name__)

CHANNEL = "remisiones:updates"

EVENT_CREATED = "REMISION_CREATED"
EVENT_UPDATE = "REMISION_UPDATE"


def build_remision_event(
    event_type: str,
    remision: Remision,
    audit_entry: Optional[AuditEntry] = None
) -> str:
    """
    Serializa el evento de una remisión ya escrita.

    Args:
        event_type: EVENT_CREATED o EVENT_UPDATE
        remision: Estado resultante (con su nueva versión)
        audit_entry: Entrada de historial escrita en la misma transacción

    Returns:
        str: JSON listo para PUBLISH
    """
    payload: dict[str, Any] = {
        "event_type": event_type,
        "remision_id": remision.id,
        "estado": remision.estado.value,
        "version": remision.version,
        "timestamp": format_fecha_hora(now_colombia()),
    }

    if audit_entry is not None:
        payload["action"] = audit_entry.action.value
        payload["actor"] = audit_entry.actor

    logger.debug(f"Built {event_type} event for {remision.id}")
    return json.dumps(payload)
