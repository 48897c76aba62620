"""
Documentos de prueba generados con pymupdf (PDF con texto por página e imágenes PNG).
"""
import fitz


def pdf_con_paginas(*textos: str) -> bytes:
    """PDF con una página por texto; cada página contiene su texto como marcador."""
    documento = fitz.open()
    for texto in textos:
        pagina = documento.new_page()
        pagina.insert_text((72, 72), texto)
    contenido = documento.tobytes()
    documento.close()
    return contenido


def imagen_png(ancho: int, alto: int) -> bytes:
    pixmap = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, ancho, alto), False)
    pixmap.clear_with(180)
    return pixmap.tobytes("png")


def textos_por_pagina(pdf_bytes: bytes) -> list[str]:
    with fitz.open(stream=pdf_bytes, filetype="pdf") as documento:
        return [pagina.get_text().strip() for pagina in documento]


def contar_paginas(pdf_bytes: bytes) -> int:
    with fitz.open(stream=pdf_bytes, filetype="pdf") as documento:
        return documento.page_count
