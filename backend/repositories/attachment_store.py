"""
Almacén de adjuntos direccionable por URL.

Los archivos ya están subidos (el almacén es externo); aquí solo se
descargan sus bytes para consolidarlos. Errores de transporte se reintentan
con tenacity; respuestas no-2xx se convierten en FetchError sin reintento.
"""
import logging
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential
)

from backend.config import config
from backend.exceptions import FetchError

logger = logging.getLogger(__name__)


class HttpAttachmentStore:
    """
    Cliente HTTP de descarga de adjuntos.

    El AsyncClient se comparte entre descargas (pool de conexiones) y se
    cierra en el shutdown de la aplicación con aclose().
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_attempts: Optional[int] = None
    ):
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.TIMEOUT_DESCARGA_SEGUNDOS),
            follow_redirects=True
        )
        self.max_attempts = max_attempts or config.FETCH_MAX_ATTEMPTS

    async def fetch(self, url: str) -> bytes:
        """
        Descarga el contenido de un adjunto.

        Args:
            url: URL opaca registrada en AdjuntoMetadata

        Returns:
            bytes: Contenido del archivo

        Raises:
            FetchError: Respuesta no-2xx o error de red tras los reintentos
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=0.5, max=2),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True
            ):
                with attempt:
                    response = await self.client.get(url)
        except httpx.TransportError as e:
            logger.warning(f"Attachment fetch failed (network) | URL: {url} | {e!r}")
            raise FetchError(url, details=f"error de red: {e.__class__.__name__}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Attachment fetch failed | URL: {url} | {e!r}")
            raise FetchError(url, details=str(e)) from e

        if not response.is_success:
            logger.warning(f"Attachment fetch failed | URL: {url} | HTTP {response.status_code}")
            raise FetchError(url, details=f"HTTP {response.status_code}")

        logger.debug(f"Attachment fetched | URL: {url} | {len(response.content)} bytes")
        return response.content

    async def aclose(self) -> None:
        await self.client.aclose()
