"""
Remisiones API - Entry Point.

Motor del ciclo de vida de remisiones: flujo de estados con justificación
condicional y estado terminal, y consolidación de adjuntos en un PDF único.

Configuración:
- FastAPI app con OpenAPI docs automática
- CORS para el frontend de back-office
- Exception handlers para errores custom (RemisionesException)
- Conexión Redis (remisiones, historial, pub/sub) en startup/shutdown

Endpoints:
- GET  /api/docs                      - OpenAPI documentation (Swagger UI)
- GET  /api/health                    - Health check
- GET  /api/remisiones/{id}/*         - Estado, adjuntos, historial, consolidado
- GET  /api/sse/stream                - Cambios en tiempo real
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import ConnectionError as RedisConnectionError
import logging

from backend.config import config
from backend.core.dependency import close_attachment_store
from backend.exceptions import RemisionesException
from backend.models.error import ErrorResponse
from backend.repositories.redis_repository import RedisRepository
from backend.utils.logger import setup_logger

from backend.routers import health, remisiones, sse_router


# ============================================================================
# INICIALIZACIÓN FASTAPI
# ============================================================================

app = FastAPI(
    title="Remisiones API",
    description="""
    API del ciclo de vida de remisiones.

    ## Funcionalidades

    - **Estados**: GENERADO → PENDIENTE → (PROFORMA) → RADICADO → FACTURADO, con
      estados especiales CANCELADO, CORTESIA, GARANTIA y SIN_VINCULAR que requieren justificación
    - **Adjuntos**: orden de trabajo (PDF), remisión escaneada e informe técnico (PDF o imagen)
    - **Consolidado**: un PDF con los adjuntos en orden fijo y portada opcional
    - **Historial**: registro append-only de cambios de estado y adjuntos

    ## Reglas

    - FACTURADO solo desde RADICADO y es terminal
    - Los adjuntos sugieren un cambio de estado pero nunca lo aplican
    """,
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    license_info={
        "name": "Proprietary"
    }
)


# ============================================================================
# MIDDLEWARE - CORS
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=[
        "Content-Disposition",
        "X-Consolidado-Incluidos",
        "X-Consolidado-Omitidos",
        "X-Consolidado-Paginas",
        "X-Consolidado-Motivos",
        "X-Consolidado-Advertencias",
    ]
)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

# Mapeo de error_code → HTTP status
STATUS_MAP = {
    # 404 NOT FOUND
    "REMISION_NO_ENCONTRADA": status.HTTP_404_NOT_FOUND,

    # 400 BAD REQUEST
    "MISSING_JUSTIFICATION": status.HTTP_400_BAD_REQUEST,
    "ADJUNTO_INVALIDO": status.HTTP_400_BAD_REQUEST,

    # 409 CONFLICT
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "CONCURRENT_MODIFICATION": status.HTTP_409_CONFLICT,

    # 415 / 422
    "UNSUPPORTED_MEDIA_TYPE": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    "IMAGE_DECODE_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "NO_CONTENT_AVAILABLE": status.HTTP_422_UNPROCESSABLE_ENTITY,

    # 502 / 503
    "FETCH_ERROR": status.HTTP_502_BAD_GATEWAY,
    "REPOSITORY_CONNECTION_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(RemisionesException)
async def remisiones_exception_handler(request: Request, exc: RemisionesException):
    """
    Handler global para las excepciones custom.

    Mapea error_code → HTTP status (STATUS_MAP) y retorna ErrorResponse.

    Logging según severidad:
        - 500+: ERROR con stack trace
        - 409: WARNING (conflictos de flujo o concurrencia)
        - 4xx: INFO (errores cliente esperados)
    """
    http_status = STATUS_MAP.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    error_response = ErrorResponse(
        success=False,
        error=exc.error_code,
        message=exc.message,
        data=exc.data if exc.data else None
    )

    if http_status >= 500:
        logging.error(f"Server error: {exc.message}", exc_info=True)
    elif http_status == 409:
        logging.warning(f"Conflict: {exc.message}")
    else:
        logging.info(f"Client error: {exc.message}")

    return JSONResponse(
        status_code=http_status,
        content=error_response.model_dump()
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """
    Handler para excepciones no manejadas (fallback 500).

    En desarrollo (ENVIRONMENT=local) incluye el detalle del error en data.
    """
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    error_response = ErrorResponse(
        success=False,
        error="INTERNAL_SERVER_ERROR",
        message="Error interno del servidor. Contacta al administrador.",
        data={"detail": str(exc)} if config.ENVIRONMENT == "local" else None
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump()
    )


# ============================================================================
# STARTUP/SHUTDOWN EVENTS
# ============================================================================


@app.on_event("startup")
async def startup_event():
    """
    Configura logging, valida la configuración y conecta Redis.

    Si Redis no está disponible la API arranca igual: /api/health reporta
    "degraded" y los endpoints de remisiones responden 503.
    """
    setup_logger()
    config.validate()
    logging.info("✅ Remisiones API iniciada correctamente")
    logging.info(f"Environment: {config.ENVIRONMENT}")
    logging.info(f"Timezone: {config.TIMEZONE}")
    logging.info(f"CORS Origins: {config.ALLOWED_ORIGINS}")

    try:
        await RedisRepository().connect()
    except RedisConnectionError as e:
        logging.error(f"❌ Redis unavailable at startup, running degraded: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    """Cierra Redis y el cliente HTTP de adjuntos."""
    logging.info("🔴 Remisiones API shutting down...")
    await close_attachment_store()
    await RedisRepository().disconnect()


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(remisiones.router, prefix="/api", tags=["Remisiones"])
app.include_router(sse_router.router)


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Remisiones API - Lifecycle engine",
        "version": "1.0.0",
        "docs": "/api/docs",
        "health": "/api/health"
    }
