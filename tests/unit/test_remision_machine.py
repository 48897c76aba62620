"""
Unit tests for RemisionStateMachine.

Tests the adjacency table derived from the machine declaration, the terminal
FACTURADO state and the record patch computed by the `cambiar` event.
"""
import warnings
from datetime import datetime

import pytest
from statemachine.exceptions import TransitionNotAllowed

from backend.domain.state_machines.remision_machine import (
    RemisionStateMachine,
    TRANSICIONES_PERMITIDAS
)
from backend.models.enums import EstadoRemision
from backend.models.remision import Remision
from backend.utils.date_formatter import get_timezone


E = EstadoRemision

TABLA_ESPERADA = {
    E.GENERADO: {E.PENDIENTE, E.CANCELADO, E.CORTESIA, E.GARANTIA},
    E.PENDIENTE: {E.PROFORMA, E.RADICADO, E.CANCELADO, E.SIN_VINCULAR},
    E.PROFORMA: {E.RADICADO, E.CANCELADO, E.PENDIENTE},
    E.RADICADO: {E.FACTURADO, E.CANCELADO},
    E.FACTURADO: set(),
    E.CANCELADO: {E.GENERADO, E.PENDIENTE},
    E.CORTESIA: {E.GENERADO, E.PENDIENTE},
    E.GARANTIA: {E.GENERADO, E.PENDIENTE},
    E.SIN_VINCULAR: {E.GENERADO, E.PENDIENTE},
}


@pytest.fixture
def momento():
    return get_timezone().localize(datetime(2026, 3, 2, 9, 15))


def make_remision(estado: EstadoRemision, **kwargs) -> Remision:
    return Remision(id="rem-001", remision="REM-2031", estado=estado, version="v1", **kwargs)


def test_adjacency_table_matches_declared_flow():
    """Every state has exactly the declared targets."""
    assert {estado: set(destinos) for estado, destinos in TRANSICIONES_PERMITIDAS.items()} == TABLA_ESPERADA


def test_adjacency_table_covers_every_state():
    assert set(TRANSICIONES_PERMITIDAS) == set(EstadoRemision)


def test_facturado_is_final_and_has_no_exits():
    machine = RemisionStateMachine(make_remision(E.RADICADO))
    assert machine.facturado.final is True
    assert TRANSICIONES_PERMITIDAS[E.FACTURADO] == ()


def test_facturado_only_reachable_from_radicado():
    origenes = [estado for estado, destinos in TRANSICIONES_PERMITIDAS.items() if E.FACTURADO in destinos]
    assert origenes == [E.RADICADO]


def test_machine_starts_in_remision_state():
    machine = RemisionStateMachine(make_remision(E.PROFORMA))
    assert machine.get_estado() is E.PROFORMA


def test_get_estado_emits_no_deprecation_warning():
    machine = RemisionStateMachine(make_remision(E.RADICADO))

    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        assert machine.get_estado() is E.RADICADO


def test_cambiar_moves_to_requested_target(momento):
    machine = RemisionStateMachine(make_remision(E.PENDIENTE))

    machine.send("cambiar", destino="PROFORMA", momento=momento)

    assert machine.get_estado() is E.PROFORMA
    assert machine.cambios == {"estado": E.PROFORMA}


def test_cambiar_to_undeclared_target_raises():
    machine = RemisionStateMachine(make_remision(E.GENERADO))

    with pytest.raises(TransitionNotAllowed):
        machine.send("cambiar", destino="FACTURADO")

    assert machine.get_estado() is E.GENERADO


def test_cambiar_out_of_facturado_raises():
    machine = RemisionStateMachine(make_remision(E.FACTURADO))

    with pytest.raises(TransitionNotAllowed):
        machine.send("cambiar", destino="CANCELADO", justificacion="error")


def test_special_state_stores_trimmed_justification(momento):
    machine = RemisionStateMachine(make_remision(E.PENDIENTE))

    machine.send("cambiar", destino="CANCELADO", justificacion="  cliente desiste  ", momento=momento)

    assert machine.cambios == {"estado": E.CANCELADO, "justificacion_estado": "cliente desiste"}


def test_radicado_stamps_fecha_radicacion_on_first_entry(momento):
    machine = RemisionStateMachine(make_remision(E.PENDIENTE))

    machine.send("cambiar", destino="RADICADO", momento=momento)

    assert machine.cambios["fecha_radicacion"] == momento


def test_radicado_keeps_existing_stamp(momento):
    """Re-entering RADICADO (e.g. after PROFORMA) never rewrites the first stamp."""
    original = get_timezone().localize(datetime(2026, 1, 10, 8, 0))
    machine = RemisionStateMachine(make_remision(E.PROFORMA, fecha_radicacion=original))

    machine.send("cambiar", destino="RADICADO", momento=momento)

    assert "fecha_radicacion" not in machine.cambios


def test_facturado_stamps_fecha_facturacion(momento):
    machine = RemisionStateMachine(make_remision(E.RADICADO))

    machine.send("cambiar", destino="FACTURADO", momento=momento)

    assert machine.get_estado() is E.FACTURADO
    assert machine.cambios == {"estado": E.FACTURADO, "fecha_facturacion": momento}


def test_machine_does_not_mutate_remision(momento):
    remision = make_remision(E.PENDIENTE)
    machine = RemisionStateMachine(remision)

    machine.send("cambiar", destino="RADICADO", momento=momento)

    assert remision.estado is E.PENDIENTE
    assert remision.fecha_radicacion is None
