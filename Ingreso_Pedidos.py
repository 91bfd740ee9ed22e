import logging
from datetime import date

import streamlit as st

import config
from domain.models import HEADER_FIELDS, ITEM_FIELDS, VARIETY_SUGGESTIONS
from element_component import export_panel, finalize_dialog
from services.order_batch_store import OrderBatchStore
from utils.formatting import format_quantity

config.configure_logging()
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Ingreso de Pedidos", page_icon="🍎", layout="wide")

HEADER_LABELS = {
    "reDestinatarios": "Re / Destinatarios:",
    "deNombrePais": "De / Nombre País:",
    "nave": "Nave:",
    "fechaCarga": "Fecha de Carga:",
    "exporta": "Exporta:",
    "emailSubject": "Asunto del Email:",
}

HEADER_PLACEHOLDERS = {
    "reDestinatarios": "Proveedor",
    "deNombrePais": "País",
    "nave": "Nave",
    "exporta": "Exportadora",
    "emailSubject": "Asunto del Correo (Se auto-completa)",
}

ITEM_LABELS = {
    "pallets": "Pallets",
    "especie": "Especie",
    "variedad": "Variedad",
    "formato": "Formato",
    "calibre": "Calibre",
    "categoria": "Categoría",
    "preciosFOB": "Precios FOB",
    "estado": "Observaciones",
}

ITEM_PLACEHOLDERS = {
    "pallets": "21",
    "especie": "Manzana",
    "variedad": "Galas",
    "formato": "20 Kg",
    "calibre": "100;113",
    "categoria": "PRE:XFY",
    "preciosFOB": "$14",
    "estado": "Comentarios",
}

EXPORT_STATE = "last_export"


# -----------------------------------------------------------------------------
# Session state
# -----------------------------------------------------------------------------

if "order_store" not in st.session_state:
    st.session_state["order_store"] = OrderBatchStore()
    st.session_state["resync_widgets"] = True

store: OrderBatchStore = st.session_state["order_store"]


def header_key(name: str) -> str:
    return f"hdr_{name}"


def item_key(item_id: str, name: str) -> str:
    return f"item_{item_id}_{name}"


def _widget_value(name: str, value: str):
    if name != "fechaCarga":
        return value
    try:
        return date.fromisoformat(value) if value else None
    except ValueError:
        return None


def sync_widgets(overwrite: bool) -> None:
    """
    Copy the live order into widget state. With overwrite=False only
    widgets that have no state yet (new rows) are filled.
    """
    for name in HEADER_FIELDS:
        value = _widget_value(name, store.header.get(name))
        if overwrite:
            st.session_state[header_key(name)] = value
        else:
            st.session_state.setdefault(header_key(name), value)

    for item in store.items:
        for name in ITEM_FIELDS:
            if overwrite:
                st.session_state[item_key(item.id, name)] = item.get(name)
            else:
                st.session_state.setdefault(item_key(item.id, name), item.get(name))


def report(ok: bool, msg: str) -> None:
    if not ok and msg:
        st.session_state["flash_warning"] = msg
    st.session_state["resync_widgets"] = True


# -----------------------------------------------------------------------------
# Callbacks (field commits and actions)
# -----------------------------------------------------------------------------

def on_header_commit(name: str) -> None:
    raw = st.session_state.get(header_key(name))
    if name == "fechaCarga":
        raw = raw.isoformat() if raw else ""
    report(*store.set_header_field(name, raw or "", commit=True))


def on_item_commit(item_id: str, name: str) -> None:
    raw = st.session_state.get(item_key(item_id, name)) or ""
    if name == "estado":
        report(*store.save_observation(item_id, raw))
    else:
        report(*store.set_item_field(item_id, name, raw, commit=True))


def on_action(action, *args) -> None:
    report(*action(*args))


# -----------------------------------------------------------------------------
# Page
# -----------------------------------------------------------------------------

if st.session_state.pop("resync_widgets", False):
    sync_widgets(overwrite=True)
sync_widgets(overwrite=False)

st.image(config.LOGO_URL, width=160)
st.title("Ingreso de Pedidos")

if EXPORT_STATE in st.session_state:
    export_panel(st.session_state[EXPORT_STATE])
    if st.button("Ocultar", key="hide_export"):
        del st.session_state[EXPORT_STATE]
        st.rerun()
    st.divider()

flash = st.session_state.pop("flash_warning", None)
if flash:
    st.warning(flash)

# 1) Header
st.subheader("Datos del Pedido")
header_cols = st.columns(3)
for i, name in enumerate(HEADER_FIELDS):
    with header_cols[i % 3]:
        if name == "fechaCarga":
            st.date_input(
                HEADER_LABELS[name],
                key=header_key(name),
                format="YYYY-MM-DD",
                on_change=on_header_commit,
                args=(name,),
            )
        else:
            st.text_input(
                HEADER_LABELS[name],
                key=header_key(name),
                placeholder=HEADER_PLACEHOLDERS.get(name, ""),
                on_change=on_header_commit,
                args=(name,),
            )

# 2) Navigation
col_prev, col_label, col_next = st.columns([1, 2, 1])
with col_prev:
    st.button(
        "◀ Anterior",
        on_click=on_action,
        args=(store.go_to_previous,),
        disabled=store.current_index == 0,
        use_container_width=True,
    )
with col_label:
    st.markdown(
        f"<div style='text-align: center; font-weight: 600; font-size: 1.1rem;'>"
        f"{store.position_label()}</div>",
        unsafe_allow_html=True,
    )
with col_next:
    st.button(
        "Siguiente ▶",
        on_click=on_action,
        args=(store.go_to_next,),
        disabled=store.current_index == len(store.accumulated_orders) - 1,
        use_container_width=True,
    )

st.divider()

# 3) Line items
st.subheader("Detalle")
st.caption("Variedades sugeridas: " + ", ".join(VARIETY_SUGGESTIONS))

widths = [1, 1.4, 1.4, 1.2, 1.3, 1.3, 1.5, 2, 0.5, 0.5, 0.5]
for row, item in enumerate(store.items):
    cols = st.columns(widths)
    for col, name in zip(cols, ITEM_FIELDS):
        with col:
            st.text_input(
                ITEM_LABELS[name],
                key=item_key(item.id, name),
                placeholder=ITEM_PLACEHOLDERS[name],
                on_change=on_item_commit,
                args=(item.id, name),
                label_visibility="visible" if row == 0 else "collapsed",
                disabled=item.is_canceled and name == "estado",
            )

    with cols[8]:
        if row == 0:
            st.write("")
        st.button("⧉", key=f"dup_{item.id}", help="Duplicar fila",
                  on_click=on_action, args=(store.duplicate_item, item.id))
    with cols[9]:
        if row == 0:
            st.write("")
        st.button("↺" if item.is_canceled else "⊘", key=f"cancel_{item.id}",
                  help="Restaurar fila" if item.is_canceled else "Cancelar fila",
                  on_click=on_action, args=(store.toggle_cancel, item.id))
    with cols[10]:
        if row == 0:
            st.write("")
        st.button("🗑", key=f"del_{item.id}",
                  help="No se puede eliminar la última fila" if len(store.items) == 1 else "Eliminar fila",
                  on_click=on_action, args=(store.delete_item, item.id),
                  disabled=len(store.items) == 1)

st.button("➕ Agregar fila", on_click=on_action, args=(store.add_item,))

st.metric("Total de Pallets", format_quantity(store.total_pallets()))

st.divider()

# 4) Orders
col_add, col_finalize = st.columns(2)
with col_add:
    st.button("Agregar Pedido", on_click=on_action, args=(store.add_order,),
              use_container_width=True)
with col_finalize:
    if st.button("Finalizar Pedido", type="primary", use_container_width=True,
                 help="Finalizar el pedido y ver opciones de envío"):
        store.save_live_to_accumulated()
        finalize_dialog(store, EXPORT_STATE)
