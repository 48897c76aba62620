"""
Unit tests for remisión event payloads published on Redis pub/sub.
"""
import json
import re

from backend.models.audit import AuditEntry
from backend.models.enums import AccionAuditoria, EstadoRemision
from backend.models.remision import Remision
from backend.services.redis_event_service import (
    CHANNEL,
    EVENT_CREATED,
    EVENT_UPDATE,
    build_remision_event
)


def remision_radicada() -> Remision:
    return Remision(
        id="rem-001",
        remision="REM-2031",
        estado=EstadoRemision.RADICADO,
        version="7c9e6679-7425-40de-944b-e07fc1f90ae7"
    )


def test_channel_name():
    assert CHANNEL == "remisiones:updates"


def test_update_event_includes_audit_action_and_actor():
    entry = AuditEntry(
        remision_id="rem-001",
        actor="auxiliar@empresa.co",
        action=AccionAuditoria.CAMBIO_ESTADO,
        details="Estado cambiado de PENDIENTE a RADICADO"
    )

    evento = json.loads(build_remision_event(EVENT_UPDATE, remision_radicada(), entry))

    assert evento["event_type"] == "REMISION_UPDATE"
    assert evento["remision_id"] == "rem-001"
    assert evento["estado"] == "RADICADO"
    assert evento["version"] == "7c9e6679-7425-40de-944b-e07fc1f90ae7"
    assert evento["action"] == "Cambio de estado"
    assert evento["actor"] == "auxiliar@empresa.co"


def test_event_without_audit_entry_omits_action():
    evento = json.loads(build_remision_event(EVENT_CREATED, remision_radicada()))

    assert evento["event_type"] == "REMISION_CREATED"
    assert "action" not in evento
    assert "actor" not in evento


def test_timestamp_uses_colombian_format():
    evento = json.loads(build_remision_event(EVENT_UPDATE, remision_radicada()))

    assert re.fullmatch(r"\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2}", evento["timestamp"])
