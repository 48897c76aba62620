"""
Configuración del backend de Remisiones.

Carga y valida variables de entorno necesarias para el funcionamiento del sistema.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Cargar variables de entorno desde .env.local
env_path = Path(__file__).parent.parent / '.env.local'
load_dotenv(dotenv_path=env_path)


class Config:
    """Configuración centralizada del backend."""

    # Environment
    ENVIRONMENT: str = os.getenv('ENVIRONMENT', 'development')

    # Timezone para fechas de negocio (radicación, facturación, auditoría)
    TIMEZONE: str = os.getenv('TIMEZONE', 'America/Bogota')

    # API Configuration
    API_HOST: str = os.getenv('API_HOST', '0.0.0.0')
    API_PORT: int = int(os.getenv('API_PORT', '8000'))

    # CORS - Orígenes permitidos
    ALLOWED_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv('ALLOWED_ORIGINS', 'http://localhost:3000').split(',')
    ]

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    # Redis (almacén de remisiones + historial + pub/sub)
    REDIS_URL: str = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    REDIS_POOL_MAX_CONNECTIONS: int = int(os.getenv('REDIS_POOL_MAX_CONNECTIONS', '20'))
    REDIS_SOCKET_CONNECT_TIMEOUT: float = float(os.getenv('REDIS_SOCKET_CONNECT_TIMEOUT', '5'))
    REDIS_SOCKET_TIMEOUT: float = float(os.getenv('REDIS_SOCKET_TIMEOUT', '5'))
    REDIS_HEALTH_CHECK_INTERVAL: int = int(os.getenv('REDIS_HEALTH_CHECK_INTERVAL', '30'))

    # Consolidado de PDFs
    MAX_DESCARGAS_CONCURRENTES: int = int(os.getenv('MAX_DESCARGAS_CONCURRENTES', '3'))
    TIMEOUT_DESCARGA_SEGUNDOS: float = float(os.getenv('TIMEOUT_DESCARGA_SEGUNDOS', '20'))
    FETCH_MAX_ATTEMPTS: int = int(os.getenv('FETCH_MAX_ATTEMPTS', '2'))

    # Adjuntos
    MAX_ADJUNTO_BYTES: int = int(os.getenv('MAX_ADJUNTO_BYTES', str(10 * 1024 * 1024)))  # 10MB

    # Optimistic locking
    CONFLICT_MAX_ATTEMPTS: int = int(os.getenv('CONFLICT_MAX_ATTEMPTS', '3'))

    @classmethod
    def validate(cls) -> None:
        """
        Valida que las variables de entorno críticas estén configuradas.

        Raises:
            ValueError: Si falta alguna variable requerida o un límite es inválido.
        """
        required_vars = {
            'REDIS_URL': cls.REDIS_URL,
            'TIMEZONE': cls.TIMEZONE,
        }

        missing = [var for var, value in required_vars.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}. "
                f"Please check your .env.local file."
            )

        if not 1 <= cls.MAX_DESCARGAS_CONCURRENTES <= 3:
            raise ValueError(
                f"MAX_DESCARGAS_CONCURRENTES must be between 1 and 3, "
                f"got {cls.MAX_DESCARGAS_CONCURRENTES}"
            )

        if cls.TIMEOUT_DESCARGA_SEGUNDOS <= 0:
            raise ValueError("TIMEOUT_DESCARGA_SEGUNDOS must be positive")


# Instancia global de configuración
config = Config()


if __name__ == '__main__':
    """Script para validar configuración."""
    try:
        config.validate()
        print("✅ Configuración válida")
        print(f"   - Environment: {config.ENVIRONMENT}")
        print(f"   - Redis: {config.REDIS_URL}")
        print(f"   - Timezone: {config.TIMEZONE}")
        print(f"   - Descargas concurrentes: {config.MAX_DESCARGAS_CONCURRENTES}")
        print(f"   - Allowed Origins: {config.ALLOWED_ORIGINS}")
    except ValueError as e:
        print(f"❌ Error de configuración: {e}")
        exit(1)
