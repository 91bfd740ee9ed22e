# pedidos/services/order_batch_store.py

import logging
from dataclasses import replace
from datetime import date
from typing import List, Optional, Tuple

from domain.models import (
    CANCELED_STATE,
    HEADER_ATTRS,
    ITEM_ATTRS,
    BatchState,
    LineItem,
    OrderHeader,
    OrderRecord,
    new_item_id,
    total_pallets as _items_total_pallets,
)
from services.field_normalizer import normalize_field, normalize_observation
from services.subject_service import generate_subject, subject_basis, sync_subject

logger = logging.getLogger(__name__)

Transition = Tuple[bool, str, BatchState]

MSG_FIRST_ORDER = "Ya estás en el primer pedido."
MSG_LAST_ORDER = "Ya estás en el último pedido."
MSG_LAST_ROW = "No se puede eliminar la última fila."
MSG_UNKNOWN_ITEM = "La fila indicada no existe."
MSG_UNKNOWN_FIELD = "Campo desconocido."
MSG_CANCELED_ITEM = "La fila está cancelada."


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def blank_record(supplier: str = "", today: Optional[date] = None) -> OrderRecord:
    """
    A new order with a single empty row. Only the supplier may carry over;
    the subject is derived from it.
    """
    header = OrderHeader(
        re_destinatarios=supplier,
        email_subject=generate_subject([supplier], [], today),
    )
    return OrderRecord(header=header, items=[LineItem()])


def new_session(today: Optional[date] = None) -> BatchState:
    record = blank_record(today=today)
    return _load_record(
        BatchState(
            header=record.header,
            items=record.items,
            accumulated_orders=[record],
        ),
        0,
    )


def _load_record(state: BatchState, index: int) -> BatchState:
    record = state.accumulated_orders[index].copy()
    loaded = replace(
        state,
        header=record.header,
        items=record.items,
        current_index=index,
    )
    # A stored subject (hand-edited or not) survives being loaded.
    return replace(loaded, subject_basis=subject_basis(loaded))


def _item_index(state: BatchState, item_id: str) -> int:
    for idx, item in enumerate(state.items):
        if item.id == item_id:
            return idx
    return -1


def _reject(state: BatchState, message: str, detail: str = "") -> Transition:
    if detail:
        logger.info("%s (%s)", message, detail)
    else:
        logger.info(message)
    return False, message, state


# ---------------------------------------------------------------------------
# Save points and navigation
# ---------------------------------------------------------------------------

def save_live_to_accumulated(state: BatchState) -> BatchState:
    """
    Write the live form back into its slot. Idempotent.
    """
    if not 0 <= state.current_index < len(state.accumulated_orders):
        logger.warning(
            "Current index %s out of range (%s orders), nothing saved",
            state.current_index,
            len(state.accumulated_orders),
        )
        return state

    orders = list(state.accumulated_orders)
    orders[state.current_index] = state.live_record()
    return replace(state, accumulated_orders=orders)


def add_order(state: BatchState, today: Optional[date] = None) -> Transition:
    saved = save_live_to_accumulated(state)
    record = blank_record(supplier=saved.header.re_destinatarios, today=today)

    orders = saved.accumulated_orders + [record]
    new_state = _load_record(replace(saved, accumulated_orders=orders), len(orders) - 1)

    logger.info("Order %s added (%s in batch)", new_state.current_index + 1, len(orders))
    return True, f"Pedido {len(orders)} agregado.", new_state


def go_to_previous(state: BatchState) -> Transition:
    if state.current_index <= 0:
        return _reject(state, MSG_FIRST_ORDER)

    saved = save_live_to_accumulated(state)
    return True, "", _load_record(saved, state.current_index - 1)


def go_to_next(state: BatchState) -> Transition:
    if state.current_index >= len(state.accumulated_orders) - 1:
        return _reject(state, MSG_LAST_ORDER)

    saved = save_live_to_accumulated(state)
    return True, "", _load_record(saved, state.current_index + 1)


def snapshot_orders(state: BatchState) -> List[OrderRecord]:
    """Every order with the live form saved in, as independent copies."""
    saved = save_live_to_accumulated(state)
    return [order.copy() for order in saved.accumulated_orders]


def finalize_and_reset(
        state: BatchState,
        today: Optional[date] = None,
) -> Tuple[bool, str, Tuple[List[OrderRecord], BatchState]]:
    """
    Close the session: returns every accumulated order for export
    and a brand new session to continue with.
    """
    orders = snapshot_orders(state)
    logger.info("Batch finalized with %s order(s)", len(orders))
    return True, f"{len(orders)} pedido(s) listos para enviar.", (orders, new_session(today))


# ---------------------------------------------------------------------------
# Field edits
# ---------------------------------------------------------------------------

def set_header_field(
        state: BatchState,
        name: str,
        value: str,
        commit: bool = True,
        today: Optional[date] = None,
) -> Transition:
    """
    Store a header value. Raw while typing, normalized on commit.
    """
    if name not in HEADER_ATTRS:
        return _reject(state, MSG_UNKNOWN_FIELD, name)

    stored = normalize_field(name, value) if commit else (value or "")
    new_state = replace(state, header=state.header.with_field(name, stored))
    return True, "", sync_subject(new_state, today)


def set_item_field(
        state: BatchState,
        item_id: str,
        name: str,
        value: str,
        commit: bool = True,
        today: Optional[date] = None,
) -> Transition:
    if name not in ITEM_ATTRS:
        return _reject(state, MSG_UNKNOWN_FIELD, name)

    idx = _item_index(state, item_id)
    if idx < 0:
        return _reject(state, MSG_UNKNOWN_ITEM, item_id)

    if name == "estado" and state.items[idx].is_canceled:
        return _reject(state, MSG_CANCELED_ITEM, item_id)

    stored = normalize_field(name, value) if commit else (value or "")
    items = list(state.items)
    items[idx] = items[idx].with_field(name, stored)
    return True, "", sync_subject(replace(state, items=items), today)


def save_observation(state: BatchState, item_id: str, text: str) -> Transition:
    idx = _item_index(state, item_id)
    if idx < 0:
        return _reject(state, MSG_UNKNOWN_ITEM, item_id)
    if state.items[idx].is_canceled:
        return _reject(state, MSG_CANCELED_ITEM, item_id)

    items = list(state.items)
    items[idx] = replace(items[idx], estado=normalize_observation(text))
    return True, "", replace(state, items=items)


# ---------------------------------------------------------------------------
# Row actions
# ---------------------------------------------------------------------------

def add_item(state: BatchState) -> Transition:
    return True, "", replace(state, items=state.items + [LineItem()])


def duplicate_item(state: BatchState, source_id: str, today: Optional[date] = None) -> Transition:
    """
    Copy a row right below itself. The copy is never canceled but keeps
    the observation as is, CANCELADO included.
    """
    idx = _item_index(state, source_id)
    if idx < 0:
        return _reject(state, MSG_UNKNOWN_ITEM, source_id)

    source = state.items[idx]
    clone = replace(source, id=new_item_id(), is_canceled=False)

    items = state.items[:idx + 1] + [clone] + state.items[idx + 1:]
    return True, "", sync_subject(replace(state, items=items), today)


def delete_item(state: BatchState, item_id: str, today: Optional[date] = None) -> Transition:
    if len(state.items) <= 1:
        return _reject(state, MSG_LAST_ROW)

    idx = _item_index(state, item_id)
    if idx < 0:
        return _reject(state, MSG_UNKNOWN_ITEM, item_id)

    items = state.items[:idx] + state.items[idx + 1:]
    return True, "", sync_subject(replace(state, items=items), today)


def toggle_cancel(state: BatchState, item_id: str) -> Transition:
    """
    Cancel or restore a row. Cancelling overwrites the observation with
    CANCELADO; restoring clears it.
    """
    idx = _item_index(state, item_id)
    if idx < 0:
        return _reject(state, MSG_UNKNOWN_ITEM, item_id)

    item = state.items[idx]
    canceled = not item.is_canceled
    items = list(state.items)
    items[idx] = replace(
        item,
        is_canceled=canceled,
        estado=CANCELED_STATE if canceled else "",
    )
    return True, "", replace(state, items=items)


# ---------------------------------------------------------------------------
# Derived values
# ---------------------------------------------------------------------------

def total_pallets(state: BatchState) -> float:
    return _items_total_pallets(state.items)


def position_label(state: BatchState) -> str:
    return f"Pedido {state.current_index + 1} de {len(state.accumulated_orders)}"


class OrderBatchStore:
    """
    Session-owned holder of the current BatchState.

    Every action applies one of the transitions above and keeps the
    resulting state; the (ok, message) pair is handed back to the caller.
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today
        self.state = new_session(today)

    def _apply(self, result: Transition) -> Tuple[bool, str]:
        ok, msg, self.state = result
        return ok, msg

    # field edits
    def set_header_field(self, name: str, value: str, commit: bool = True) -> Tuple[bool, str]:
        return self._apply(set_header_field(self.state, name, value, commit, self._today))

    def set_item_field(self, item_id: str, name: str, value: str, commit: bool = True) -> Tuple[bool, str]:
        return self._apply(set_item_field(self.state, item_id, name, value, commit, self._today))

    def save_observation(self, item_id: str, text: str) -> Tuple[bool, str]:
        return self._apply(save_observation(self.state, item_id, text))

    # rows
    def add_item(self) -> Tuple[bool, str]:
        return self._apply(add_item(self.state))

    def duplicate_item(self, source_id: str) -> Tuple[bool, str]:
        return self._apply(duplicate_item(self.state, source_id, self._today))

    def delete_item(self, item_id: str) -> Tuple[bool, str]:
        return self._apply(delete_item(self.state, item_id, self._today))

    def toggle_cancel(self, item_id: str) -> Tuple[bool, str]:
        return self._apply(toggle_cancel(self.state, item_id))

    # orders
    def save_live_to_accumulated(self) -> None:
        self.state = save_live_to_accumulated(self.state)

    def add_order(self) -> Tuple[bool, str]:
        return self._apply(add_order(self.state, self._today))

    def go_to_previous(self) -> Tuple[bool, str]:
        return self._apply(go_to_previous(self.state))

    def go_to_next(self) -> Tuple[bool, str]:
        return self._apply(go_to_next(self.state))

    def snapshot_orders(self) -> List[OrderRecord]:
        return snapshot_orders(self.state)

    def finalize_and_reset(self) -> List[OrderRecord]:
        _ok, _msg, (orders, self.state) = finalize_and_reset(self.state, self._today)
        return orders

    # derived
    def total_pallets(self) -> float:
        return total_pallets(self.state)

    def position_label(self) -> str:
        return position_label(self.state)

    @property
    def header(self) -> OrderHeader:
        return self.state.header

    @property
    def items(self) -> List[LineItem]:
        return self.state.items

    @property
    def accumulated_orders(self) -> List[OrderRecord]:
        return self.state.accumulated_orders

    @property
    def current_index(self) -> int:
        return self.state.current_index
