"""
Modelos Pydantic para Remisiones.

Una remisión es una unidad de trabajo facturable que recorre el flujo de
estados y acumula sus adjuntos de evidencia (orden de trabajo, remisión
escaneada, informe técnico).
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from backend.models.enums import EstadoRemision, TipoAdjunto


class AdjuntoMetadata(BaseModel):
    """
    Referencia inmutable a un adjunto ya subido al almacén.

    Reemplazar un adjunto crea una nueva referencia que sustituye a la anterior.
    """
    url: str = Field(..., min_length=1, description="URL opaca del almacén de adjuntos")
    name: str = Field(..., min_length=1, description="Nombre original del archivo")
    media_type: str = Field(..., description="MIME declarado al subir", examples=["application/pdf"])
    size: int = Field(..., ge=0, description="Tamaño en bytes")
    uploaded_by: str = Field(..., description="Usuario que subió el archivo")
    uploaded_at: datetime = Field(..., description="Fecha y hora de subida")

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class Remision(BaseModel):
    """
    Remisión persistida.

    `estado` solo cambia mediante RemisionStateService.transition(); nunca por
    asignación directa. `version` se regenera en cada escritura (optimistic locking).
    """
    id: Optional[str] = Field(None, description="ID asignado por el repositorio")
    remision: str = Field(..., min_length=1, description="Código humano de la remisión", examples=["REM-2031"])
    no_orden: str = Field("", description="Número de orden de trabajo", examples=["OT-445"])
    movil: str = Field("", description="Móvil / unidad atendida", examples=["M-12"])
    une: Optional[str] = Field(None, description="Unidad de negocio")
    genero: Optional[str] = Field(None, description="Usuario que generó la remisión")

    estado: EstadoRemision = Field(EstadoRemision.GENERADO)
    justificacion_estado: Optional[str] = None

    subtotal: float = Field(0, ge=0)
    total: float = Field(0, ge=0)
    servicios: list[str] = Field(default_factory=list, max_length=5)
    tecnicos: list[str] = Field(default_factory=list, max_length=3)

    fecha_remision: Optional[date] = None
    fecha_maximo: Optional[date] = None
    fecha_radicacion: Optional[datetime] = None
    fecha_facturacion: Optional[datetime] = None

    adjuntos: dict[TipoAdjunto, AdjuntoMetadata] = Field(default_factory=dict)

    version: Optional[str] = Field(None, description="Token de versión (UUID4)")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("servicios", "tecnicos")
    @classmethod
    def descartar_vacios(cls, v: list[str]) -> list[str]:
        """Los formularios envían descriptores vacíos para slots no usados."""
        return [item for item in v if item and item.strip()]

    @model_validator(mode="after")
    def validar_fechas(self) -> "Remision":
        if self.fecha_remision and self.fecha_maximo and self.fecha_maximo < self.fecha_remision:
            raise ValueError("fecha_maximo debe ser mayor o igual a fecha_remision")
        return self

    def tiene_adjunto(self, tipo: TipoAdjunto) -> bool:
        return tipo in self.adjuntos


class CrearRemisionRequest(BaseModel):
    """Datos de una remisión nueva; siempre nace en GENERADO."""
    remision: str = Field(..., min_length=1, examples=["REM-2031"])
    no_orden: str = ""
    movil: str = ""
    une: Optional[str] = None
    genero: Optional[str] = None
    subtotal: float = Field(0, ge=0)
    total: float = Field(0, ge=0)
    servicios: list[str] = Field(default_factory=list, max_length=5)
    tecnicos: list[str] = Field(default_factory=list, max_length=3)
    fecha_remision: Optional[date] = None
    fecha_maximo: Optional[date] = None
    actor: str = Field(..., min_length=1, description="Usuario que crea la remisión")

    def to_remision(self) -> Remision:
        return Remision(**self.model_dump(exclude={"actor"}))


class CambioEstadoRequest(BaseModel):
    """Solicitud de cambio de estado."""
    estado: EstadoRemision = Field(..., description="Estado destino")
    justificacion: Optional[str] = Field(
        None,
        description="Obligatoria para CANCELADO, CORTESIA, GARANTIA y SIN_VINCULAR"
    )
    actor: str = Field(..., min_length=1, description="Usuario que ejecuta el cambio")


class TransicionesResponse(BaseModel):
    """Estados disponibles y sugerencia para una remisión."""
    remision_id: str
    estado_actual: EstadoRemision
    permitidos: list[EstadoRemision]
    sugerido: Optional[EstadoRemision] = None


class RegistrarAdjuntoRequest(BaseModel):
    """Registro de un archivo ya subido al almacén de adjuntos."""
    url: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    media_type: str = Field(..., min_length=1)
    size: int = Field(..., ge=0)
    actor: str = Field(..., min_length=1)


class AdjuntoResponse(BaseModel):
    """Resultado de registrar o eliminar un adjunto."""
    remision: Remision
    sugerido: Optional[EstadoRemision] = Field(
        None,
        description="Estado sugerido según los adjuntos (no se aplica automáticamente)"
    )
