"""
DocumentAssembler - PDF consolidado de los adjuntos de una remisión.

Orden fijo: orden de trabajo → remisión escaneada → informe técnico.
Solo la portada es opcional.

Flow de assemble():
1. Descargar en paralelo los adjuntos presentes (máx. MAX_DESCARGAS_CONCURRENTES
   simultáneas, cada una limitada por TIMEOUT_DESCARGA_SEGUNDOS)
2. En un hilo de trabajo: clasificar, convertir imágenes y concatenar páginas
   en el orden fijo, sin importar el orden en que terminaron las descargas
3. Si ningún adjunto aportó páginas: NoContentAvailableError (sin bytes)
4. Portada opcional al inicio

Los fallos de un adjunto (descarga, timeout, formato, imagen corrupta, PDF
ilegible) no abortan el consolidado: el tipo se omite con una advertencia.
El ensamblador nunca modifica la remisión ni escribe historial.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

import fitz
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from backend.config import config
from backend.exceptions import (
    FetchError,
    ImageDecodeError,
    NoContentAvailableError,
    UnsupportedMediaTypeError
)
from backend.models.consolidado import (
    AdjuntoOmitido,
    ConsolidadoOptions,
    ConsolidationResult,
    ValidacionConsolidado
)
from backend.models.enums import ORDEN_CONSOLIDACION, TipoAdjunto
from backend.models.remision import AdjuntoMetadata, Remision
from backend.repositories.attachment_store import HttpAttachmentStore
from backend.services.document_converter import Imagen, clasificar, convertir
from backend.utils.date_formatter import (
    format_fecha,
    format_fecha_hora,
    format_moneda_cop,
    now_colombia
)

logger = logging.getLogger(__name__)

MOTIVO_SIN_ADJUNTO = "no adjunto"
MOTIVO_ORDEN_NO_PDF = "la orden de trabajo debe ser PDF"

# Tope de descargas simultáneas por consolidado, aunque se pida más
LIMITE_DESCARGAS_CONCURRENTES = 3


@dataclass
class Descarga:
    """Resultado de descargar un adjunto: contenido o motivo del fallo."""
    tipo: TipoAdjunto
    adjunto: AdjuntoMetadata
    contenido: Optional[bytes] = None
    error: Optional[str] = None


@dataclass
class Ensamblado:
    pdf_bytes: bytes
    total_paginas: int
    incluidos: list[TipoAdjunto]
    omitidos: list[AdjuntoOmitido]


def nombre_archivo(remision: Remision) -> str:
    """
    Nombre canónico del consolidado: {no_orden}_{movil}.pdf

    Examples:
        >>> nombre_archivo(Remision(remision="R1", no_orden="OT-445", movil="M-12"))
        'OT445_M-12.pdf'
        >>> nombre_archivo(Remision(remision="R1"))
        'ORDEN_MOVIL.pdf'
    """
    no_orden = re.sub(r"[^A-Za-z0-9]", "", remision.no_orden or "") or "ORDEN"
    movil = re.sub(r"[^A-Za-z0-9-]", "", remision.movil or "") or "MOVIL"
    return f"{no_orden}_{movil}.pdf"


def validate_attachments_for_consolidation(remision: Remision) -> ValidacionConsolidado:
    """Disponibilidad de adjuntos en orden de consolidación."""
    available = [tipo for tipo in ORDEN_CONSOLIDACION if remision.tiene_adjunto(tipo)]
    missing = [tipo for tipo in ORDEN_CONSOLIDACION if not remision.tiene_adjunto(tipo)]
    return ValidacionConsolidado(
        can_consolidate=len(available) > 0,
        available=available,
        missing=missing,
        available_count=len(available),
        total_count=len(ORDEN_CONSOLIDACION)
    )


def _advertencia(omitido: AdjuntoOmitido) -> str:
    return f"{omitido.tipo.etiqueta}: {omitido.motivo}"


def generar_portada(remision: Remision, incluidos: list[TipoAdjunto]) -> bytes:
    """Portada A4 con los datos de la remisión (una página)."""
    buffer = BytesIO()
    ancho, alto = A4
    c = canvas.Canvas(buffer, pagesize=A4)

    c.setFont("Helvetica-Bold", 18)
    titulo = "REMISIÓN CONSOLIDADA"
    c.drawString((ancho - c.stringWidth(titulo, "Helvetica-Bold", 18)) / 2, alto - 40 * mm, titulo)
    c.line(20 * mm, alto - 45 * mm, ancho - 20 * mm, alto - 45 * mm)

    campos = [
        ("Remisión", remision.remision),
        ("Móvil", remision.movil or "N/A"),
        ("No. Orden", remision.no_orden or "N/A"),
        ("Estado", remision.estado.value),
        ("UNE", remision.une or "N/A"),
        ("Fecha", format_fecha(remision.fecha_remision)),
        ("Total", format_moneda_cop(remision.total)),
    ]

    y = alto - 60 * mm
    for etiqueta, valor in campos:
        c.setFont("Helvetica-Bold", 12)
        c.drawString(30 * mm, y, f"{etiqueta}:")
        c.setFont("Helvetica", 12)
        c.drawString(70 * mm, y, str(valor))
        y -= 9 * mm

    y -= 6 * mm
    c.setFont("Helvetica-Bold", 12)
    c.drawString(30 * mm, y, "Documentos incluidos:")
    c.setFont("Helvetica", 12)
    for tipo in incluidos:
        y -= 7 * mm
        c.drawString(36 * mm, y, f"- {tipo.etiqueta}")

    c.setFont("Helvetica-Oblique", 9)
    c.drawString(30 * mm, 20 * mm, f"Generado el {format_fecha_hora(now_colombia())}")

    c.showPage()
    c.save()
    return buffer.getvalue()


class DocumentAssembler:
    """
    Ensamblador de consolidados.

    Sin estado compartido entre llamadas: consolidados de remisiones distintas
    son independientes.
    """

    def __init__(
        self,
        store: HttpAttachmentStore,
        max_concurrentes: Optional[int] = None,
        timeout_segundos: Optional[float] = None
    ):
        self.store = store
        self.max_concurrentes = min(
            max(max_concurrentes or config.MAX_DESCARGAS_CONCURRENTES, 1),
            LIMITE_DESCARGAS_CONCURRENTES
        )
        self.timeout_segundos = timeout_segundos or config.TIMEOUT_DESCARGA_SEGUNDOS

    async def _descargar(
        self,
        semaforo: asyncio.Semaphore,
        tipo: TipoAdjunto,
        adjunto: AdjuntoMetadata
    ) -> Descarga:
        async with semaforo:
            try:
                contenido = await asyncio.wait_for(
                    self.store.fetch(adjunto.url),
                    timeout=self.timeout_segundos
                )
            except asyncio.TimeoutError:
                logger.warning(f"Fetch timeout | {tipo.value} | {self.timeout_segundos}s")
                return Descarga(tipo, adjunto, error="tiempo de descarga agotado")
            except FetchError as e:
                return Descarga(tipo, adjunto, error=e.message)
            except Exception as e:
                # Almacenes no HTTP pueden fallar con errores propios (OSError, etc.)
                logger.warning(f"Fetch failed | {tipo.value} | {e!r}")
                return Descarga(tipo, adjunto, error=f"error de descarga: {e.__class__.__name__}")

        return Descarga(tipo, adjunto, contenido=contenido)

    def _ensamblar(
        self,
        remision: Remision,
        descargas: list[Descarga],
        include_cover: bool
    ) -> Ensamblado:
        """Clasifica, convierte y concatena en orden fijo (bloqueante, corre en un hilo)."""
        incluidos: list[TipoAdjunto] = []
        omitidos: list[AdjuntoOmitido] = []
        por_tipo = {descarga.tipo: descarga for descarga in descargas}

        with fitz.open() as salida:
            for tipo in ORDEN_CONSOLIDACION:
                descarga = por_tipo.get(tipo)
                if descarga is None:
                    omitidos.append(AdjuntoOmitido(tipo=tipo, motivo=MOTIVO_SIN_ADJUNTO))
                    continue
                if descarga.error:
                    omitidos.append(AdjuntoOmitido(tipo=tipo, motivo=descarga.error))
                    continue

                try:
                    fuente = clasificar(
                        descarga.contenido,
                        descarga.adjunto.media_type,
                        descarga.adjunto.name
                    )
                    if tipo is TipoAdjunto.ORDEN_TRABAJO and isinstance(fuente, Imagen):
                        logger.warning(f"Work order is an image ({fuente.formato}) | Remisión: {remision.id}")
                        omitidos.append(AdjuntoOmitido(tipo=tipo, motivo=MOTIVO_ORDEN_NO_PDF))
                        continue
                    pdf = convertir(fuente)
                    with fitz.open(stream=pdf, filetype="pdf") as documento:
                        if documento.page_count == 0:
                            omitidos.append(AdjuntoOmitido(tipo=tipo, motivo="PDF sin páginas"))
                            continue
                        salida.insert_pdf(documento)
                        logger.debug(f"Appended {documento.page_count} page(s) | {tipo.value}")
                except (UnsupportedMediaTypeError, ImageDecodeError) as e:
                    omitidos.append(AdjuntoOmitido(tipo=tipo, motivo=e.message))
                    continue
                except (RuntimeError, ValueError) as e:
                    # pymupdf: FileDataError / EmptyFileError derivan de RuntimeError
                    logger.warning(f"Unreadable PDF | {tipo.value} | {e}")
                    omitidos.append(AdjuntoOmitido(tipo=tipo, motivo="PDF ilegible"))
                    continue

                incluidos.append(tipo)

            if salida.page_count == 0:
                return Ensamblado(b"", 0, incluidos, omitidos)

            if include_cover:
                with fitz.open(stream=generar_portada(remision, incluidos), filetype="pdf") as portada:
                    salida.insert_pdf(portada, start_at=0)

            return Ensamblado(
                pdf_bytes=salida.tobytes(garbage=3, deflate=True),
                total_paginas=salida.page_count,
                incluidos=incluidos,
                omitidos=omitidos
            )

    async def assemble(
        self,
        remision: Remision,
        options: Optional[ConsolidadoOptions] = None
    ) -> ConsolidationResult:
        """
        Genera el PDF consolidado de una remisión.

        Args:
            remision: Remisión con sus adjuntos registrados
            options: include_cover para anteponer la portada

        Returns:
            ConsolidationResult con bytes, páginas, tipos incluidos/omitidos y advertencias

        Raises:
            NoContentAvailableError: Si ningún adjunto aportó páginas
            asyncio.CancelledError: Si la tarea se cancela (descargas en curso canceladas)
        """
        options = options or ConsolidadoOptions()
        logger.info(
            f"Assembling consolidado | Remisión: {remision.id} | "
            f"Adjuntos: {[tipo.value for tipo in remision.adjuntos]} | Portada: {options.include_cover}"
        )

        semaforo = asyncio.Semaphore(self.max_concurrentes)
        descargas: list[Descarga] = list(await asyncio.gather(*[
            self._descargar(semaforo, tipo, remision.adjuntos[tipo])
            for tipo in ORDEN_CONSOLIDACION
            if remision.tiene_adjunto(tipo)
        ]))

        ensamblado = await asyncio.to_thread(
            self._ensamblar, remision, descargas, options.include_cover
        )
        advertencias = [_advertencia(omitido) for omitido in ensamblado.omitidos]

        if ensamblado.total_paginas == 0:
            logger.error(f"❌ No content for consolidado | Remisión: {remision.id} | {advertencias}")
            raise NoContentAvailableError(remision.id, advertencias)

        resultado = ConsolidationResult(
            incluidos=ensamblado.incluidos,
            omitidos=ensamblado.omitidos,
            total_paginas=ensamblado.total_paginas,
            portada_incluida=options.include_cover,
            pdf_bytes=ensamblado.pdf_bytes,
            nombre_archivo=nombre_archivo(remision),
            advertencias=advertencias
        )

        logger.info(
            f"✅ Consolidado ready | {resultado.nombre_archivo} | {resultado.total_paginas} page(s) | "
            f"Incluidos: {[tipo.value for tipo in resultado.incluidos]} | Advertencias: {len(advertencias)}"
        )
        return resultado
