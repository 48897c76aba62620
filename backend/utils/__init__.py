"""Utilidades del backend de Remisiones."""

from .date_formatter import (
    format_fecha,
    format_fecha_hora,
    format_moneda_cop,
    get_timezone,
    now_colombia,
    today_colombia
)

__all__ = [
    "format_fecha",
    "format_fecha_hora",
    "format_moneda_cop",
    "get_timezone",
    "now_colombia",
    "today_colombia"
]
