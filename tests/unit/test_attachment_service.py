"""
Unit tests for AttachmentService (register/replace/remove attachment references).
"""
import pytest

from backend.exceptions import AdjuntoInvalidoError, ConcurrentModificationError
from backend.models.enums import AccionAuditoria, EstadoRemision, TipoAdjunto
from backend.models.remision import RegistrarAdjuntoRequest, Remision
from backend.services.attachment_service import AttachmentService
from backend.services.validation_service import ValidationService
from tests.fixtures.memory_repository import InMemoryRemisionRepository


@pytest.fixture
def repository():
    repo = InMemoryRemisionRepository()
    repo.seed(Remision(id="rem-001", remision="REM-2031", estado=EstadoRemision.GENERADO))
    return repo


@pytest.fixture
def attachment_service(repository):
    return AttachmentService(repository=repository, validation_service=ValidationService())


def request_pdf(nombre: str = "ot-445.pdf", media_type: str = "application/pdf") -> RegistrarAdjuntoRequest:
    return RegistrarAdjuntoRequest(
        url=f"https://files.example.co/{nombre}",
        name=nombre,
        media_type=media_type,
        size=2048,
        actor="auxiliar@empresa.co"
    )


@pytest.mark.asyncio
async def test_register_stores_reference_and_suggests_pendiente(attachment_service, repository):
    respuesta = await attachment_service.registrar("rem-001", TipoAdjunto.ORDEN_TRABAJO, request_pdf())

    adjunto = respuesta.remision.adjuntos[TipoAdjunto.ORDEN_TRABAJO]
    assert adjunto.name == "ot-445.pdf"
    assert adjunto.uploaded_by == "auxiliar@empresa.co"
    assert respuesta.sugerido is EstadoRemision.PENDIENTE


@pytest.mark.asyncio
async def test_register_never_changes_estado(attachment_service, repository):
    await attachment_service.registrar("rem-001", TipoAdjunto.ORDEN_TRABAJO, request_pdf())

    assert (await repository.read("rem-001")).estado is EstadoRemision.GENERADO


@pytest.mark.asyncio
async def test_register_writes_audit_entry(attachment_service, repository):
    await attachment_service.registrar("rem-001", TipoAdjunto.ORDEN_TRABAJO, request_pdf())

    historial = await repository.get_audit("rem-001")
    assert len(historial) == 1
    assert historial[0].action is AccionAuditoria.ADJUNTO_SUBIDO
    assert historial[0].details == "Orden de trabajo: ot-445.pdf"


@pytest.mark.asyncio
async def test_replace_supersedes_previous_reference(attachment_service, repository):
    await attachment_service.registrar("rem-001", TipoAdjunto.ORDEN_TRABAJO, request_pdf("v1.pdf"))
    respuesta = await attachment_service.registrar("rem-001", TipoAdjunto.ORDEN_TRABAJO, request_pdf("v2.pdf"))

    assert respuesta.remision.adjuntos[TipoAdjunto.ORDEN_TRABAJO].name == "v2.pdf"
    historial = await repository.get_audit("rem-001")
    assert historial[-1].details == "Orden de trabajo: v2.pdf (reemplaza v1.pdf)"


@pytest.mark.asyncio
async def test_invalid_media_type_rejected_before_any_write(attachment_service, repository):
    with pytest.raises(AdjuntoInvalidoError):
        await attachment_service.registrar(
            "rem-001", TipoAdjunto.ORDEN_TRABAJO, request_pdf("foto.png", "image/png")
        )

    assert repository.escrituras == 0


@pytest.mark.asyncio
async def test_remove_attachment(attachment_service, repository):
    await attachment_service.registrar("rem-001", TipoAdjunto.INFORME_TECNICO, request_pdf("inf.pdf"))

    respuesta = await attachment_service.eliminar("rem-001", TipoAdjunto.INFORME_TECNICO, "jefe@empresa.co")

    assert TipoAdjunto.INFORME_TECNICO not in respuesta.remision.adjuntos
    historial = await repository.get_audit("rem-001")
    assert historial[-1].action is AccionAuditoria.ADJUNTO_ELIMINADO
    assert historial[-1].actor == "jefe@empresa.co"


@pytest.mark.asyncio
async def test_remove_missing_attachment_raises(attachment_service):
    with pytest.raises(AdjuntoInvalidoError):
        await attachment_service.eliminar("rem-001", TipoAdjunto.INFORME_TECNICO, "jefe@empresa.co")


@pytest.mark.asyncio
async def test_register_detects_concurrent_write(attachment_service, repository):
    repository.antes_de_escribir = repository.bump_version

    with pytest.raises(ConcurrentModificationError):
        await attachment_service.registrar("rem-001", TipoAdjunto.ORDEN_TRABAJO, request_pdf())

    assert (await repository.read("rem-001")).adjuntos == {}
