# pedidos/domain/models.py

import uuid
from dataclasses import dataclass, field, replace
from typing import List, Tuple

from utils.formatting import parse_number

CANCELED_STATE = "CANCELADO"

# Hint list for the "variedad" input; never enforced.
VARIETY_SUGGESTIONS = (
    "GALA",
    "GRANNY",
    "FUJI",
    "PINK LADY",
    "ROJA",
    "CRIPPS PINK",
)

# Field keys as used by the form and the rendered document, in tab order.
HEADER_FIELDS = (
    "reDestinatarios",
    "deNombrePais",
    "nave",
    "fechaCarga",
    "exporta",
    "emailSubject",
)

ITEM_FIELDS = (
    "pallets",
    "especie",
    "variedad",
    "formato",
    "calibre",
    "categoria",
    "preciosFOB",
    "estado",
)

HEADER_ATTRS = {
    "reDestinatarios": "re_destinatarios",
    "deNombrePais": "de_nombre_pais",
    "nave": "nave",
    "fechaCarga": "fecha_carga",
    "exporta": "exporta",
    "emailSubject": "email_subject",
}

ITEM_ATTRS = {
    "pallets": "pallets",
    "especie": "especie",
    "variedad": "variedad",
    "formato": "formato",
    "calibre": "calibre",
    "categoria": "categoria",
    "preciosFOB": "precios_fob",
    "estado": "estado",
}


def new_item_id() -> str:
    return str(uuid.uuid4())


@dataclass
class LineItem:
    """
    One row of shipment detail.
    """
    id: str = field(default_factory=new_item_id)
    pallets: str = ""
    especie: str = ""
    variedad: str = ""
    formato: str = ""
    calibre: str = ""  # e.g. "100 - 113"
    categoria: str = ""  # e.g. "PRE - XFY"
    precios_fob: str = ""  # e.g. "$ 14,50 - $ 15,00"
    estado: str = ""  # observation or CANCELED_STATE
    is_canceled: bool = False

    def pallet_count(self) -> float:
        return parse_number(self.pallets)

    def get(self, name: str) -> str:
        return getattr(self, ITEM_ATTRS[name])

    def with_field(self, name: str, value: str) -> "LineItem":
        return replace(self, **{ITEM_ATTRS[name]: value})


@dataclass
class OrderHeader:
    re_destinatarios: str = ""  # supplier
    de_nombre_pais: str = ""  # destination country
    nave: str = ""  # vessel
    fecha_carga: str = ""  # ISO date "YYYY-MM-DD" or empty
    exporta: str = ""  # exporter
    email_subject: str = ""

    def get(self, name: str) -> str:
        return getattr(self, HEADER_ATTRS[name])

    def with_field(self, name: str, value: str) -> "OrderHeader":
        return replace(self, **{HEADER_ATTRS[name]: value})


@dataclass
class OrderRecord:
    """
    A complete order: header plus its line items, in display order.
    """
    header: OrderHeader = field(default_factory=OrderHeader)
    items: List[LineItem] = field(default_factory=lambda: [LineItem()])

    def total_pallets(self) -> float:
        return total_pallets(self.items)

    def observations(self) -> str:
        return consolidated_observations(self.items)

    def copy(self) -> "OrderRecord":
        return OrderRecord(
            header=replace(self.header),
            items=[replace(item) for item in self.items],
        )


@dataclass
class BatchState:
    """
    Session state: the live form plus every order accumulated so far.

    `header`/`items` may run ahead of `accumulated_orders[current_index]`
    while the user is typing; they are written back at every save point.
    `subject_basis` is the (supplier, first species) pair the live subject
    was last derived from.
    """
    header: OrderHeader
    items: List[LineItem]
    accumulated_orders: List[OrderRecord]
    current_index: int = 0
    subject_basis: Tuple[str, str] = ("", "")

    def live_record(self) -> OrderRecord:
        return OrderRecord(header=self.header, items=self.items).copy()


def total_pallets(items: List[LineItem]) -> float:
    """Sum of pallets over the items that are not canceled."""
    return sum(item.pallet_count() for item in items if not item.is_canceled)


def consolidated_observations(items: List[LineItem]) -> str:
    """
    Join every real observation with "; ".
    Canceled items and the CANCELADO sentinel are left out.
    """
    notes = [
        item.estado.strip()
        for item in items
        if not item.is_canceled
        and item.estado.strip()
        and item.estado.strip().upper() != CANCELED_STATE
    ]
    return "; ".join(notes)
