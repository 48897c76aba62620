"""
Utilidades para fechas y montos de remisiones.

Centraliza timezone (America/Bogota por defecto) y el formato es-CO usado
en la portada del consolidado y en los detalles del historial.
"""

from datetime import date, datetime
from typing import Optional, Union
import pytz
from pytz.tzinfo import BaseTzInfo
from backend.config import config


def get_timezone() -> BaseTzInfo:
    """
    Obtiene el timezone configurado del sistema.

    Examples:
        >>> get_timezone().zone
        'America/Bogota'
    """
    return pytz.timezone(config.TIMEZONE)


def now_colombia() -> datetime:
    """Fecha y hora actual, timezone-aware, en el timezone configurado."""
    return datetime.now(get_timezone())


def today_colombia() -> date:
    """Fecha actual en el timezone configurado."""
    return now_colombia().date()


def format_fecha(valor: Optional[Union[date, datetime]]) -> str:
    """
    Formatea una fecha como DD/MM/YYYY (es-CO).

    Examples:
        >>> format_fecha(date(2026, 3, 2))
        '02/03/2026'
        >>> format_fecha(None)
        'N/A'
    """
    if valor is None:
        return "N/A"
    return valor.strftime("%d/%m/%Y")


def format_fecha_hora(dt: datetime) -> str:
    """
    Formatea un datetime como DD/MM/YYYY HH:MM:SS en el timezone configurado.

    Datetimes naive se asumen ya expresados en el timezone configurado.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(get_timezone())
    return dt.strftime("%d/%m/%Y %H:%M:%S")


def format_moneda_cop(valor: Optional[float]) -> str:
    """
    Formatea un monto en pesos colombianos sin decimales.

    Examples:
        >>> format_moneda_cop(1250000)
        '$ 1.250.000'
        >>> format_moneda_cop(None)
        'N/A'
    """
    if valor is None:
        return "N/A"
    entero = f"{round(valor):,}".replace(",", ".")
    return f"$ {entero}"
