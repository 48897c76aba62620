"""
Services module - Business logic orchestration layer.

- RemisionStateService: Cambios de estado validados, auditados y con reintento
- AttachmentService: Registro y eliminación de referencias a adjuntos
- DocumentAssembler: PDF consolidado a partir de los adjuntos (document_converter normaliza imágenes)
- redis_event_service: Payloads de eventos publicados en Redis pub/sub

Los módulos se importan directamente (backend.services.<modulo>); el
repositorio de remisiones depende de redis_event_service.
"""
