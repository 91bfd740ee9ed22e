# pedidos/services/export_service.py

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from urllib.parse import quote, urlencode

import pandas as pd

from domain.models import OrderRecord
from services.html_renderer import render_batch, render_preview
from services.subject_service import consolidated_subject
from utils.formatting import parse_number

logger = logging.getLogger(__name__)

MOBILE_UA_RE = re.compile(r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.I)

GMAIL_COMPOSE_URL = "https://mail.google.com/mail/"

MAILTO_BODY = (
    "El contenido del pedido ha sido copiado a tu portapapeles. Por favor, abre tu "
    "aplicación de correo y pega el contenido manualmente en el cuerpo del mensaje."
)

CSV_COLUMNS = [
    "Pedido",
    "Proveedor",
    "País",
    "Nave",
    "Fecha de carga",
    "Exporta",
    "Pallets",
    "Especie",
    "Variedad",
    "Formato",
    "Calibre",
    "Categoría",
    "Precios FOB",
    "Observaciones",
    "Cancelado",
]


@dataclass
class ExportPayload:
    html: str
    subject: str
    mail_link: str
    order_count: int


def is_mobile_user_agent(user_agent: Optional[str]) -> bool:
    return bool(user_agent and MOBILE_UA_RE.search(user_agent))


def build_mail_link(subject: str, recipient: str = "", mobile: bool = False) -> str:
    """
    mailto: link on mobile devices, Gmail web compose everywhere else.
    The HTML body travels through the clipboard, not the link.
    """
    if mobile:
        query = f"subject={quote(subject)}&body={quote(MAILTO_BODY)}"
        return f"mailto:{quote(recipient, safe='@,')}?{query}"

    params = {
        "view": "cm",
        "fs": "1",
        "tf": "1",
        "to": recipient,
        "su": subject,
        "body": "",
    }
    return f"{GMAIL_COMPOSE_URL}?{urlencode(params, quote_via=quote)}"


def resolve_mobile(user_agent: Optional[str], mail_client: str = "auto") -> bool:
    if mail_client == "mailto":
        return True
    if mail_client == "gmail":
        return False
    return is_mobile_user_agent(user_agent)


def build_export(
        orders: List[OrderRecord],
        user_agent: Optional[str] = None,
        recipient: str = "",
        mail_client: str = "auto",
        today: Optional[date] = None,
) -> ExportPayload:
    """
    Everything the clipboard and mail collaborators need for one batch.
    An empty batch yields the preview placeholder and no mail link.
    """
    if not orders:
        logger.info("Nothing to export, batch is empty")
        return ExportPayload(html=render_preview(orders), subject="", mail_link="", order_count=0)

    subject = consolidated_subject(orders, today)
    mobile = resolve_mobile(user_agent, mail_client)
    logger.info(
        "Exporting %s order(s) with subject %r via %s",
        len(orders),
        subject,
        "mailto" if mobile else "gmail",
    )
    return ExportPayload(
        html=render_batch(orders),
        subject=subject,
        mail_link=build_mail_link(subject, recipient, mobile),
        order_count=len(orders),
    )


def batch_to_dataframe(orders: List[OrderRecord]) -> pd.DataFrame:
    """
    One row per line item, prefixed with the order number and its header.
    """
    rows = []
    for n, order in enumerate(orders, start=1):
        h = order.header
        for item in order.items:
            rows.append(
                {
                    "Pedido": n,
                    "Proveedor": h.re_destinatarios,
                    "País": h.de_nombre_pais,
                    "Nave": h.nave,
                    "Fecha de carga": h.fecha_carga,
                    "Exporta": h.exporta,
                    "Pallets": parse_number(item.pallets),
                    "Especie": item.especie,
                    "Variedad": item.variedad,
                    "Formato": item.formato,
                    "Calibre": item.calibre,
                    "Categoría": item.categoria,
                    "Precios FOB": item.precios_fob,
                    "Observaciones": item.estado,
                    "Cancelado": item.is_canceled,
                }
            )
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def batch_summary(orders: List[OrderRecord]) -> pd.DataFrame:
    """Per-order overview for the finalize dialog."""
    rows = [
        {
            "Pedido": n,
            "Proveedor": o.header.re_destinatarios,
            "País": o.header.de_nombre_pais,
            "Nave": o.header.nave,
            "Filas": len(o.items),
            "Pallets": o.total_pallets(),
        }
        for n, o in enumerate(orders, start=1)
    ]
    return pd.DataFrame(rows, columns=["Pedido", "Proveedor", "País", "Nave", "Filas", "Pallets"])
