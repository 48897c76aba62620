"""
Máquina de estados de una remisión.

Flujo principal:
- GENERADO → PENDIENTE → PROFORMA → RADICADO → FACTURADO
- PENDIENTE → RADICADO (sin proforma)
- PROFORMA → PENDIENTE (proforma rechazada)

Estados especiales (CANCELADO, CORTESIA, GARANTIA, SIN_VINCULAR) requieren
justificación y pueden reabrir el flujo hacia GENERADO o PENDIENTE.
FACTURADO es terminal (final=True): no tiene transiciones de salida.

La máquina no escribe en el repositorio: acumula los cambios del registro en
`cambios` y RemisionStateService los persiste junto con la entrada de historial
en una sola transacción.
"""

from datetime import datetime
from typing import Optional

from statemachine import State, StateMachine

from backend.models.enums import EstadoRemision
from backend.models.remision import Remision
from backend.utils.date_formatter import now_colombia


class RemisionStateMachine(StateMachine):
    """
    Máquina de estados de remisiones con un único evento `cambiar`.

    El estado destino viaja como argumento (`destino`) y la condición
    `es_destino` selecciona la transición declarada. Si ninguna transición
    del estado actual coincide, python-statemachine lanza TransitionNotAllowed.
    """

    generado = State("Generado", value="GENERADO", initial=True)
    pendiente = State("Pendiente", value="PENDIENTE")
    proforma = State("Proforma", value="PROFORMA")
    radicado = State("Radicado", value="RADICADO")
    facturado = State("Facturado", value="FACTURADO", final=True)
    cancelado = State("Cancelado", value="CANCELADO")
    cortesia = State("Cortesía", value="CORTESIA")
    garantia = State("Garantía", value="GARANTIA")
    sin_vincular = State("Sin vincular", value="SIN_VINCULAR")

    # Tabla de adyacencia: una fila por estado origen
    cambiar = (
        generado.to(pendiente, cancelado, cortesia, garantia, cond="es_destino")
        | pendiente.to(proforma, radicado, cancelado, sin_vincular, cond="es_destino")
        | proforma.to(radicado, cancelado, pendiente, cond="es_destino")
        | radicado.to(facturado, cancelado, cond="es_destino")
        | cancelado.to(generado, pendiente, cond="es_destino")
        | cortesia.to(generado, pendiente, cond="es_destino")
        | garantia.to(generado, pendiente, cond="es_destino")
        | sin_vincular.to(generado, pendiente, cond="es_destino")
    )

    def __init__(self, remision: Remision):
        """
        Inicializa la máquina en el estado actual de la remisión.

        Args:
            remision: Remisión leída del repositorio (no se modifica)
        """
        self.remision = remision
        self.cambios: dict = {}
        super().__init__(start_value=remision.estado.value)

    def es_destino(self, target: State, destino: Optional[str] = None) -> bool:
        return destino is not None and target.value == destino

    def on_cambiar(
        self,
        target: State,
        justificacion: Optional[str] = None,
        momento: Optional[datetime] = None
    ):
        """
        Calcula el patch del registro para el estado destino.

        - estado: siempre
        - justificacion_estado: solo para estados especiales
        - fecha_radicacion / fecha_facturacion: solo la primera vez que se entra
          al estado; un sello existente nunca se sobrescribe
        """
        momento = momento or now_colombia()
        destino = EstadoRemision(target.value)

        cambios: dict = {"estado": destino}

        if destino.requiere_justificacion:
            cambios["justificacion_estado"] = (justificacion or "").strip()

        if destino is EstadoRemision.RADICADO and self.remision.fecha_radicacion is None:
            cambios["fecha_radicacion"] = momento
        elif destino is EstadoRemision.FACTURADO and self.remision.fecha_facturacion is None:
            cambios["fecha_facturacion"] = momento

        self.cambios = cambios

    def get_estado(self) -> EstadoRemision:
        return EstadoRemision(self.current_state_value)


def _tabla_de_adyacencia() -> dict[EstadoRemision, tuple[EstadoRemision, ...]]:
    return {
        EstadoRemision(state.value): tuple(
            EstadoRemision(transition.target.value) for transition in state.transitions
        )
        for state in RemisionStateMachine.states
    }


# Estado origen → destinos permitidos, derivado de la declaración de la máquina
TRANSICIONES_PERMITIDAS: dict[EstadoRemision, tuple[EstadoRemision, ...]] = _tabla_de_adyacencia()
