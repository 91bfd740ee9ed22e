# pedidos/services/html_renderer.py

import logging
from typing import Dict, List, Sequence

from domain.models import LineItem, OrderHeader, OrderRecord, consolidated_observations, total_pallets
from utils.formatting import format_date_es, format_quantity
from utils.html_helpers import escape, replace_placeholders

logger = logging.getLogger(__name__)

CELL_STYLE = (
    "padding: 4px 6px; border: 1px solid #eee; text-align: center; white-space: nowrap; "
    "overflow: hidden; text-overflow: ellipsis; font-size: 12px;"
)
NOTE_CELL_STYLE = (
    "padding: 4px 6px; border: 1px solid #eee; text-align: left; white-space: normal; "
    "overflow: hidden; text-overflow: ellipsis; font-size: 12px;"
)
HEAD_STYLE = "padding: 5px 8px; border: 1px solid #1e40af; text-align: center; white-space: nowrap;"
CANCELED_ROW_STYLE = "color: #ef4444; text-decoration: line-through;"

COLUMNS = [
    "Pallets",
    "Especie",
    "Variedad",
    "Formato",
    "Calibre",
    "Categoría",
    "Precios FOB",
]

ORDER_TEMPLATE = """
<div style="font-family: Arial, sans-serif; font-size: 14px; color: #333; margin-bottom: 30px; border: 1px solid #ddd; padding: 15px; border-radius: 8px;">
    <p style="margin-bottom: 5px;"><strong>País:</strong> <u>{{pais}}</u></p>
    <p style="margin-bottom: 5px;"><strong>Nave:</strong> {{nave}}</p>
    <p style="margin-bottom: 5px;"><strong>Fecha de carga:</strong> {{fecha_carga}}</p>
    <p style="margin-bottom: 15px;"><strong>Exporta:</strong> {{exporta}}</p>
    <table border="1" cellpadding="0" cellspacing="0" style="width: 100%; border-collapse: collapse; border: 1px solid #ddd;">
        <thead>
            <tr style="background-color: #2563eb; color: #ffffff;">{{head_cells}}</tr>
        </thead>
        <tbody>{{rows}}
            <tr style="background-color: #e0e0e0;">
                <td colspan="7" style="padding: 6px 15px 6px 6px; text-align: right; font-weight: bold; border: 1px solid #ccc;">Total de Pallets:</td>
                <td colspan="1" style="padding: 6px; font-weight: bold; border: 1px solid #ccc; text-align: center;">{{total_pallets}} Pallets</td>
            </tr>
        </tbody>
    </table>
    <p style="margin-top: 10px;"><strong>Observaciones:</strong> {{observaciones}}</p>
</div>
"""

ROW_TEMPLATE = (
    '<tr style="{{row_style}}">'
    '<td style="{{cell_style}}">{{pallets}}</td>'
    '<td style="{{cell_style}}">{{especie}}</td>'
    '<td style="{{cell_style}}">{{variedad}}</td>'
    '<td style="{{cell_style}}">{{formato}}</td>'
    '<td style="{{cell_style}}">{{calibre}}</td>'
    '<td style="{{cell_style}}">{{categoria}}</td>'
    '<td style="{{cell_style}}">{{precios_fob}}</td>'
    '<td style="{{note_style}}"><strong>{{estado}}</strong></td>'
    "</tr>"
)

HEADING_TEMPLATE = (
    '<h3 style="font-size: 18px; color: #2563eb; margin-top: 40px; margin-bottom: 15px;">'
    "Pedido #{{n}}</h3>"
)

BATCH_TEMPLATE = '<div class="pedidos-batch">{{orders}}</div>'

EMPTY_PREVIEW_HTML = '<p style="text-align: center; color: #888;">No hay pedidos para previsualizar.</p>'


def _head_cells() -> str:
    cells = [f'<th style="{HEAD_STYLE}">{escape(label)}</th>' for label in COLUMNS]
    cells.append(
        '<th style="padding: 5px 8px; border: 1px solid #1e40af; text-align: left; '
        'white-space: normal;">Observaciones</th>'
    )
    return "".join(cells)


def _build_row_placeholder_map(idx: int, item: LineItem) -> Dict[str, str]:
    """
    Placeholders for one table row. Rows alternate background;
    canceled rows are drawn red and struck through.
    """
    row_style = "background-color: #f9f9f9;" if idx % 2 == 0 else "background-color: #ffffff;"
    if item.is_canceled:
        row_style += CANCELED_ROW_STYLE

    return {
        "{{row_style}}": row_style,
        "{{cell_style}}": CELL_STYLE,
        "{{note_style}}": NOTE_CELL_STYLE,
        "{{pallets}}": escape(item.pallets),
        "{{especie}}": escape(item.especie),
        "{{variedad}}": escape(item.variedad),
        "{{formato}}": escape(item.formato),
        "{{calibre}}": escape(item.calibre),
        "{{categoria}}": escape(item.categoria),
        "{{precios_fob}}": escape(item.precios_fob),
        "{{estado}}": escape(item.estado),
    }


def render_order(header: OrderHeader, items: Sequence[LineItem]) -> str:
    """
    HTML block for one order: header lines, the item table with a
    pallet total over non-canceled rows, and the observations line.
    """
    rows = "".join(
        replace_placeholders(ROW_TEMPLATE, _build_row_placeholder_map(idx, item))
        for idx, item in enumerate(items)
    )

    mapping = {
        "{{pais}}": escape(header.de_nombre_pais),
        "{{nave}}": escape(header.nave),
        "{{fecha_carga}}": escape(format_date_es(header.fecha_carga)),
        "{{exporta}}": escape(header.exporta),
        "{{head_cells}}": _head_cells(),
        "{{rows}}": rows,
        "{{total_pallets}}": format_quantity(total_pallets(list(items))),
        "{{observaciones}}": escape(consolidated_observations(list(items))),
    }
    return replace_placeholders(ORDER_TEMPLATE, mapping)


def render_batch(orders: List[OrderRecord]) -> str:
    blocks = []
    for n, order in enumerate(orders, start=1):
        blocks.append(replace_placeholders(HEADING_TEMPLATE, {"{{n}}": str(n)}))
        blocks.append(render_order(order.header, order.items))

    logger.debug("Rendered batch of %s order(s)", len(orders))
    return replace_placeholders(BATCH_TEMPLATE, {"{{orders}}": "".join(blocks)})


def render_preview(orders: List[OrderRecord]) -> str:
    if not orders:
        return EMPTY_PREVIEW_HTML
    return render_batch(orders)
