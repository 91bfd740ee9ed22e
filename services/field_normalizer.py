# pedidos/services/field_normalizer.py

import logging
import re
from typing import Callable, Dict

from domain.models import CANCELED_STATE
from utils.formatting import format_usd

logger = logging.getLogger(__name__)

PRICE_RE = re.compile(r"\d+(?:[.,]\d+)?")
CALIBRE_SPLIT_RE = re.compile(r"[,;\s-]+")
ALNUM_RE = re.compile(r"[a-zA-Z0-9]+")

TOKEN_SEPARATOR = " - "

# Stored exactly as typed: numbers, dates and the hand-editable subject.
VERBATIM_FIELDS = {"pallets", "fechaCarga", "emailSubject"}


def normalize_prices(raw: str) -> str:
    """
    "14.5 and 20,0" -> "$ 14,50 - $ 20,00"
    Input without any number is cleared.
    """
    prices = []
    for match in PRICE_RE.findall(raw or ""):
        try:
            prices.append(format_usd(float(match.replace(",", "."))))
        except ValueError:
            logger.debug("Skipping unparsable price fragment %r", match)

    if not prices:
        if (raw or "").strip():
            logger.debug("No price found in %r, clearing field", raw)
        return ""
    return TOKEN_SEPARATOR.join(prices)


def normalize_calibre(raw: str) -> str:
    """ "100;113 - 120" -> "100 - 113 - 120" """
    parts = [
        part.strip().upper()
        for part in CALIBRE_SPLIT_RE.split(raw or "")
        if part.strip()
    ]
    return TOKEN_SEPARATOR.join(parts)


def normalize_categoria(raw: str) -> str:
    """ "pre:xfy" -> "PRE - XFY" """
    matches = ALNUM_RE.findall(raw or "")
    if not matches:
        return ""
    return TOKEN_SEPARATOR.join(matches).upper()


def normalize_observation(raw: str) -> str:
    """
    First letter upper-case, the rest lower-case.
    The cancellation sentinel is kept as is.
    """
    text = (raw or "").strip()
    if not text or text == CANCELED_STATE:
        return text
    return text[0].upper() + text[1:].lower()


def _upper(raw: str) -> str:
    return (raw or "").upper()


def _verbatim(raw: str) -> str:
    return raw or ""


NORMALIZERS: Dict[str, Callable[[str], str]] = {
    "preciosFOB": normalize_prices,
    "calibre": normalize_calibre,
    "categoria": normalize_categoria,
    # observations go through normalize_observation on save only
    "estado": _verbatim,
}
NORMALIZERS.update({name: _verbatim for name in VERBATIM_FIELDS})


def normalize_field(field_name: str, raw: str) -> str:
    """
    Canonical stored form of a committed field value.
    Any field without a specific rule is upper-cased.
    """
    normalizer = NORMALIZERS.get(field_name, _upper)
    return normalizer(raw)
