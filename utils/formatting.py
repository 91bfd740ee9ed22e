# pedidos/utils/formatting.py

import logging
import re
from datetime import date
from typing import Optional

logger = logging.getLogger(__name__)

LEADING_NUMBER_RE = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

MONTHS_ES = [
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
]

# date.weekday(): Monday == 0
WEEKDAYS_ES = [
    "Lunes",
    "Martes",
    "Miércoles",
    "Jueves",
    "Viernes",
    "Sábado",
    "Domingo",
]


def format_usd(n: float) -> str:
    """
    Format a price as a FOB token with ',' as decimal separator.
    Example: 14.5 -> "$ 14,50"
    """
    return f"$ {n:.2f}".replace(".", ",")


def parse_number(raw: str) -> float:
    """
    Lenient parse for display strings such as pallet counts.
    Reads the leading number ("21 pal" -> 21.0); anything else,
    including negative values, counts as 0.
    """
    text = "" if raw is None else str(raw)
    match = LEADING_NUMBER_RE.match(text)
    if not match:
        if text.strip():
            logger.debug("Non-numeric value %r counted as 0", raw)
        return 0.0

    value = float(match.group(0))
    if value < 0:
        logger.debug("Negative value %r counted as 0", raw)
        return 0.0
    return value


def format_quantity(n: float) -> str:
    """21.0 -> "21", 10.5 -> "10.5", 1234567.5 -> "1234567.5" """
    if float(n).is_integer():
        return str(int(n))
    return repr(float(n))


def iso_week_number(today: Optional[date] = None) -> int:
    """ISO-8601 week number; week 1 holds the year's first Thursday."""
    today = today or date.today()
    return today.isocalendar()[1]


def format_date_es(date_string: str) -> str:
    """
    Render an ISO calendar date as a long Spanish date.
    Example: "2025-02-14" -> "Viernes 14 de Febrero de 2025"
    Unparsable input is returned unchanged.
    """
    if not date_string:
        return ""

    try:
        parsed = date.fromisoformat(date_string.strip())
    except ValueError:
        logger.warning("Invalid date string received: %r", date_string)
        return date_string

    weekday = WEEKDAYS_ES[parsed.weekday()]
    month = MONTHS_ES[parsed.month - 1]
    return f"{weekday} {parsed.day} de {month} de {parsed.year}"
