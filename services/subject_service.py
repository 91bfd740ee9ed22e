# pedidos/services/subject_service.py

import logging
import re
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional

from domain.models import BatchState, OrderRecord
from utils.formatting import iso_week_number

logger = logging.getLogger(__name__)

NON_ALNUM_RE = re.compile(r"[^A-Z0-9]")

DEFAULT_SUPPLIER = "PROVEEDOR"
DEFAULT_SPECIES = "ESPECIE"


def _distinct_non_blank(values: Iterable[str]) -> List[str]:
    return [
        v for v in dict.fromkeys(values or [])
        if isinstance(v, str) and v.strip()
    ]


def _subject_token(value: str) -> str:
    return NON_ALNUM_RE.sub("", value.upper())


def generate_subject(
        suppliers: Iterable[str],
        species: Iterable[str],
        today: Optional[date] = None,
) -> str:
    """
    Build the email subject "PED–W{week}–{SUPPLIER}–{SPECIES}".

    Only the first supplier is used. Every distinct species is kept,
    joined with "-". Separators are en dashes.
    """
    week = iso_week_number(today)

    supplier_names = _distinct_non_blank(suppliers)
    supplier = _subject_token(supplier_names[0]) if supplier_names else ""

    species_tokens = [_subject_token(s) for s in _distinct_non_blank(species)]
    species_part = "-".join(t for t in dict.fromkeys(species_tokens) if t)

    return f"PED–W{week}–{supplier or DEFAULT_SUPPLIER}–{species_part or DEFAULT_SPECIES}"


def subject_basis(state: BatchState) -> tuple:
    first_species = state.items[0].especie if state.items else ""
    return state.header.re_destinatarios, first_species


def sync_subject(state: BatchState, today: Optional[date] = None) -> BatchState:
    """
    Re-derive the live subject after a change to the supplier or to the
    first item's species.

    The subject is only rewritten when that pair moved since the last
    derivation, so a hand-edited subject stays until the next change.
    """
    basis = subject_basis(state)
    if basis == state.subject_basis:
        return state

    subject = generate_subject([basis[0]], [basis[1]], today)
    header = state.header
    if subject != header.email_subject:
        logger.debug("Subject updated: %r -> %r", header.email_subject, subject)
        header = replace(header, email_subject=subject)

    return replace(state, header=header, subject_basis=basis)


def consolidated_subject(
        orders: List[OrderRecord],
        today: Optional[date] = None,
) -> str:
    """Subject for a whole batch: every supplier and every species."""
    suppliers = [o.header.re_destinatarios for o in orders if o.header.re_destinatarios]
    species = [item.especie for o in orders for item in o.items if item.especie]
    return generate_subject(suppliers, species, today)
