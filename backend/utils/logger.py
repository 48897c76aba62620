"""
Logger configuration for the Remisiones Backend API.

Configuración centralizada de logging con formato consistente y nivel
según el ambiente (local/producción).

Características:
- Nivel DEBUG en local, LOG_LEVEL (INFO por defecto) en otros ambientes
- Handler a stdout (la plataforma de despliegue captura los logs)
- Formato: [TIMESTAMP] [LEVEL] [MODULE] MESSAGE
"""

import logging
import sys
from backend.config import config


def setup_logger() -> None:
    """
    Configura logging global del sistema.

    Formato de log:
        [2026-03-02 09:15:00] [INFO] [backend.services.remision_state_service] Remisión rem-001: PENDIENTE -> RADICADO

    Librerías ruidosas (httpx, httpcore) quedan en WARNING para no inundar
    los logs con una línea por cada descarga de adjunto.
    """
    if config.ENVIRONMENT == "local":
        level = logging.DEBUG
    else:
        level = logging.getLevelName(config.LOG_LEVEL.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format='[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configurado: nivel={logging.getLevelName(level)}, ambiente={config.ENVIRONMENT}")

