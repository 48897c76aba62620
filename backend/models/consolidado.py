"""
Modelos del PDF consolidado.

ConsolidationResult es transitorio: se devuelve al llamador y nunca se persiste.
"""

from pydantic import BaseModel, ConfigDict, Field

from backend.models.enums import TipoAdjunto


class AdjuntoOmitido(BaseModel):
    """Un tipo de adjunto que no aportó páginas y el motivo."""
    tipo: TipoAdjunto
    motivo: str

    model_config = ConfigDict(frozen=True)


class ConsolidationResult(BaseModel):
    """Resultado de consolidar los adjuntos de una remisión."""
    incluidos: list[TipoAdjunto] = Field(default_factory=list, description="Tipos incluidos, en orden")
    omitidos: list[AdjuntoOmitido] = Field(default_factory=list)
    total_paginas: int = Field(..., ge=1, description="Páginas del PDF, portada incluida")
    portada_incluida: bool = False
    pdf_bytes: bytes = Field(..., repr=False)
    nombre_archivo: str
    advertencias: list[str] = Field(default_factory=list)


class ValidacionConsolidado(BaseModel):
    """Disponibilidad de adjuntos antes de consolidar."""
    can_consolidate: bool
    available: list[TipoAdjunto]
    missing: list[TipoAdjunto]
    available_count: int
    total_count: int


class ConsolidadoOptions(BaseModel):
    """Opciones de consolidación."""
    include_cover: bool = Field(False, description="Antepone una portada con los datos de la remisión")
