"""
Jerarquía de excepciones custom para el motor de Remisiones.

Todas las excepciones del sistema heredan de RemisionesException.
"""
from typing import Optional, Any


class RemisionesException(Exception):
    """
    Excepción base para todo el sistema de Remisiones.

    Todas las excepciones custom heredan de esta clase.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        data: Optional[dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.data = data or {}
        super().__init__(self.message)


# ==================== EXCEPCIONES 404 (NOT FOUND) ====================

class RemisionNoEncontradaError(RemisionesException):
    """La remisión no existe en el repositorio."""

    def __init__(self, remision_id: str):
        super().__init__(
            message=f"Remisión '{remision_id}' no encontrada",
            error_code="REMISION_NO_ENCONTRADA",
            data={"remision_id": remision_id}
        )


# ==================== EXCEPCIONES DE LA MÁQUINA DE ESTADOS ====================

class InvalidTransitionError(RemisionesException):
    """
    El estado destino no está permitido desde el estado actual.

    Incluye el caso explícito de FACTURADO desde cualquier estado distinto a RADICADO
    y cualquier intento de salir de FACTURADO (estado terminal).
    """

    def __init__(
        self,
        remision_id: Optional[str],
        estado_actual: str,
        estado_destino: str,
        motivo: Optional[str] = None,
        permitidos: Optional[list[str]] = None
    ):
        mensaje = f"No se puede cambiar la remisión de {estado_actual} a {estado_destino}"
        if motivo:
            mensaje += f": {motivo}"

        super().__init__(
            message=mensaje,
            error_code="INVALID_TRANSITION",
            data={
                "remision_id": remision_id,
                "estado_actual": estado_actual,
                "estado_destino": estado_destino,
                "permitidos": permitidos or []
            }
        )


class MissingJustificationError(RemisionesException):
    """El estado destino es especial y no se suministró justificación."""

    def __init__(self, remision_id: Optional[str], estado_destino: str):
        super().__init__(
            message=f"Se requiere justificación para cambiar al estado {estado_destino}",
            error_code="MISSING_JUSTIFICATION",
            data={
                "remision_id": remision_id,
                "estado_destino": estado_destino
            }
        )


class ConcurrentModificationError(RemisionesException):
    """
    Conflicto de versión en escritura concurrente (optimistic locking).

    La remisión fue modificada por otro proceso entre la lectura y la escritura.
    El llamador debe volver a leer y reintentar.
    """

    def __init__(self, remision_id: str, expected: Optional[str], actual: Optional[str]):
        super().__init__(
            message=(
                f"La remisión '{remision_id}' fue modificada por otro proceso. "
                "Vuelve a cargarla e intenta nuevamente."
            ),
            error_code="CONCURRENT_MODIFICATION",
            data={
                "remision_id": remision_id,
                "expected_version": expected,
                "actual_version": actual
            }
        )


# ==================== EXCEPCIONES DE ADJUNTOS / CONSOLIDADO ====================

class UnsupportedMediaTypeError(RemisionesException):
    """El adjunto no es un PDF ni una imagen soportada (jpeg, jpg, png, webp)."""

    def __init__(self, media_type: Optional[str], nombre: Optional[str] = None):
        super().__init__(
            message=f"Tipo de archivo no soportado: {media_type or 'desconocido'}",
            error_code="UNSUPPORTED_MEDIA_TYPE",
            data={"media_type": media_type, "nombre": nombre}
        )


class ImageDecodeError(RemisionesException):
    """La imagen no pudo ser decodificada."""

    def __init__(self, formato: str, details: Optional[str] = None):
        super().__init__(
            message=f"No se pudo decodificar la imagen ({formato})",
            error_code="IMAGE_DECODE_ERROR",
            data={"formato": formato, "details": details}
        )


class FetchError(RemisionesException):
    """Error al descargar un adjunto del almacén (HTTP, red o timeout)."""

    def __init__(self, url: str, details: Optional[str] = None):
        mensaje = "Error al obtener el archivo"
        if details:
            mensaje += f": {details}"

        super().__init__(
            message=mensaje,
            error_code="FETCH_ERROR",
            data={"url": url, "details": details}
        )


class NoContentAvailableError(RemisionesException):
    """Ningún adjunto produjo páginas; no se genera un PDF vacío."""

    def __init__(self, remision_id: Optional[str], advertencias: Optional[list[str]] = None):
        super().__init__(
            message="No se pudo generar el PDF consolidado - no hay páginas válidas",
            error_code="NO_CONTENT_AVAILABLE",
            data={
                "remision_id": remision_id,
                "advertencias": advertencias or []
            }
        )


class AdjuntoInvalidoError(RemisionesException):
    """El adjunto no cumple las reglas de su tipo (formato o tamaño)."""

    def __init__(self, tipo: str, motivo: str):
        super().__init__(
            message=motivo,
            error_code="ADJUNTO_INVALIDO",
            data={"tipo": tipo}
        )


# ==================== EXCEPCIONES 503 (SERVICE UNAVAILABLE) ====================

class RepositoryConnectionError(RemisionesException):
    """Error al conectar con el almacén de remisiones (Redis)."""

    def __init__(self, message: str, details: Optional[str] = None):
        full_message = f"Error al conectar con el almacén de remisiones: {message}"
        if details:
            full_message += f" | Detalles: {details}"

        super().__init__(
            message=full_message,
            error_code="REPOSITORY_CONNECTION_ERROR",
            data={"details": details} if details else {}
        )
