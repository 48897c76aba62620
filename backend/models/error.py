"""
Modelo Pydantic para respuestas de error.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """
    Response estándar para errores en la API.

    Utilizado por los exception handlers para retornar errores consistentes.
    """
    success: bool = Field(
        False,
        description="Siempre False para errores"
    )
    error: str = Field(
        ...,
        description="Código de error",
        examples=["INVALID_TRANSITION", "MISSING_JUSTIFICATION", "NO_CONTENT_AVAILABLE"]
    )
    message: str = Field(
        ...,
        description="Mensaje de error legible para el usuario",
        examples=["Se requiere justificación para cambiar al estado CANCELADO"]
    )
    data: Optional[dict[str, Any]] = Field(
        None,
        description="Contexto adicional sobre el error (opcional)"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "success": False,
                    "error": "INVALID_TRANSITION",
                    "message": "No se puede cambiar la remisión de PENDIENTE a FACTURADO: Solo se puede facturar desde estado RADICADO",
                    "data": {
                        "remision_id": "rem-001",
                        "estado_actual": "PENDIENTE",
                        "estado_destino": "FACTURADO",
                        "permitidos": ["PROFORMA", "RADICADO", "CANCELADO", "SIN_VINCULAR"]
                    }
                },
                {
                    "success": False,
                    "error": "MISSING_JUSTIFICATION",
                    "message": "Se requiere justificación para cambiar al estado CANCELADO",
                    "data": {
                        "remision_id": "rem-001",
                        "estado_destino": "CANCELADO"
                    }
                },
                {
                    "success": False,
                    "error": "NO_CONTENT_AVAILABLE",
                    "message": "No se pudo generar el PDF consolidado - no hay páginas válidas",
                    "data": {
                        "remision_id": "rem-001",
                        "advertencias": ["Orden de trabajo: no adjunto"]
                    }
                }
            ]
        }
    )
