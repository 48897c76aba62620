"""
Tests de formato de fechas y montos (es-CO).

Valida DD/MM/YYYY, timezone configurado y pesos sin decimales.
"""
from datetime import date, datetime

import pytz

from backend.config import config
from backend.utils.date_formatter import (
    format_fecha,
    format_fecha_hora,
    format_moneda_cop,
    get_timezone,
    now_colombia,
    today_colombia
)


class TestDateFormatter:
    """Tests para funciones de date_formatter.py"""

    def test_timezone_matches_config(self):
        assert get_timezone().zone == config.TIMEZONE

    def test_now_colombia_is_timezone_aware(self):
        dt = now_colombia()
        assert dt.tzinfo is not None
        assert dt.tzinfo.zone == config.TIMEZONE

    def test_today_colombia_returns_date(self):
        d = today_colombia()
        assert isinstance(d, date)
        assert not isinstance(d, datetime)

    def test_format_fecha_dd_mm_yyyy(self):
        assert format_fecha(date(2026, 3, 2)) == "02/03/2026"
        assert format_fecha(datetime(2026, 12, 31, 23, 59)) == "31/12/2026"

    def test_format_fecha_none(self):
        assert format_fecha(None) == "N/A"

    def test_format_fecha_hora_naive(self):
        """Naive datetimes se formatean tal cual."""
        assert format_fecha_hora(datetime(2026, 3, 2, 9, 5, 7)) == "02/03/2026 09:05:07"

    def test_format_fecha_hora_converts_aware_to_configured_timezone(self):
        utc = pytz.utc.localize(datetime(2026, 3, 2, 14, 0, 0))
        esperado = utc.astimezone(get_timezone()).strftime("%d/%m/%Y %H:%M:%S")
        assert format_fecha_hora(utc) == esperado


class TestMonedaFormatter:

    def test_thousands_separated_with_dots(self):
        assert format_moneda_cop(1250000) == "$ 1.250.000"

    def test_rounds_to_whole_pesos(self):
        assert format_moneda_cop(999.6) == "$ 1.000"

    def test_small_amount(self):
        assert format_moneda_cop(0) == "$ 0"

    def test_none(self):
        assert format_moneda_cop(None) == "N/A"
