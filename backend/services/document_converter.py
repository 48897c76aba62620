"""
Normalización de adjuntos a PDF.

Cada adjunto se clasifica una sola vez como Documento (PDF) o Imagen
(jpeg, png, webp) y a partir de ahí se trata con el conversor de su tipo:
- Documento: pasa sin cambios
- Imagen: una página A4 (horizontal si ancho > alto), margen de 10mm,
  imagen escalada para ajustarse preservando la relación de aspecto y centrada
"""
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Union

from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from backend.exceptions import ImageDecodeError, UnsupportedMediaTypeError
from backend.models.enums import EXTENSIONES_IMAGEN, MEDIA_TYPE_PDF

logger = logging.getLogger(__name__)

MARGEN = 10 * mm

FIRMA_PDF = b"%PDF-"

# Formato de imagen por MIME declarado
FORMATOS_POR_MEDIA_TYPE = {
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/png": "png",
    "image/webp": "webp",
}


@dataclass(frozen=True)
class Documento:
    """Adjunto PDF; se concatena tal cual."""
    contenido: bytes


@dataclass(frozen=True)
class Imagen:
    """Adjunto raster; se convierte a una página."""
    contenido: bytes
    formato: str


FuenteAdjunto = Union[Documento, Imagen]


def _formato_por_firma(contenido: bytes) -> Optional[str]:
    if contenido.startswith(b"\xff\xd8\xff"):
        return "jpeg"
    if contenido.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if contenido[:4] == b"RIFF" and contenido[8:12] == b"WEBP":
        return "webp"
    return None


def _extension(nombre: Optional[str]) -> str:
    if not nombre or "." not in nombre:
        return ""
    return nombre.rsplit(".", 1)[-1].lower()


def clasificar(
    contenido: bytes,
    media_type: Optional[str] = None,
    nombre: Optional[str] = None
) -> FuenteAdjunto:
    """
    Clasifica un adjunto por firma, MIME declarado o extensión (en ese orden).

    Args:
        contenido: Bytes descargados
        media_type: MIME declarado al subir
        nombre: Nombre original del archivo

    Returns:
        Documento o Imagen

    Raises:
        UnsupportedMediaTypeError: Si no es PDF ni imagen soportada
    """
    if contenido.startswith(FIRMA_PDF):
        return Documento(contenido)

    formato = _formato_por_firma(contenido)
    if formato:
        return Imagen(contenido, formato)

    declarado = (media_type or "").lower()
    extension = _extension(nombre)

    if declarado == MEDIA_TYPE_PDF or extension == "pdf":
        return Documento(contenido)

    if declarado in FORMATOS_POR_MEDIA_TYPE:
        return Imagen(contenido, FORMATOS_POR_MEDIA_TYPE[declarado])

    if extension in EXTENSIONES_IMAGEN:
        return Imagen(contenido, "jpeg" if extension == "jpg" else extension)

    raise UnsupportedMediaTypeError(media_type, nombre)


def imagen_a_pdf(imagen: Imagen) -> bytes:
    """
    Convierte una imagen en un PDF de exactamente una página.

    Raises:
        ImageDecodeError: Si la imagen no se puede decodificar
    """
    try:
        reader = ImageReader(BytesIO(imagen.contenido))
        ancho, alto = reader.getSize()
    except Exception as e:
        # ImageReader propaga errores heterogéneos de Pillow (OSError, ValueError, SyntaxError)
        logger.warning(f"Image decode failed ({imagen.formato}): {e}")
        raise ImageDecodeError(imagen.formato, details=str(e)) from e

    if ancho <= 0 or alto <= 0:
        raise ImageDecodeError(imagen.formato, details=f"dimensiones inválidas {ancho}x{alto}")

    pagina = landscape(A4) if ancho > alto else A4
    pagina_ancho, pagina_alto = pagina

    escala = min(
        (pagina_ancho - 2 * MARGEN) / ancho,
        (pagina_alto - 2 * MARGEN) / alto
    )
    dibujo_ancho = ancho * escala
    dibujo_alto = alto * escala
    x = (pagina_ancho - dibujo_ancho) / 2
    y = (pagina_alto - dibujo_alto) / 2

    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=pagina)
    try:
        c.drawImage(reader, x, y, width=dibujo_ancho, height=dibujo_alto, mask='auto')
        c.showPage()
        c.save()
    except Exception as e:
        # Cabecera válida pero datos corruptos: Pillow falla al decodificar los píxeles
        logger.warning(f"Image data corrupt ({imagen.formato}): {e}")
        raise ImageDecodeError(imagen.formato, details=str(e)) from e

    logger.debug(
        f"Image converted | {imagen.formato} {ancho}x{alto} -> "
        f"{'landscape' if ancho > alto else 'portrait'} A4"
    )
    return buffer.getvalue()


def convertir(fuente: FuenteAdjunto) -> bytes:
    """PDF listo para concatenar a partir de un adjunto clasificado."""
    if isinstance(fuente, Documento):
        return fuente.contenido
    return imagen_a_pdf(fuente)

