# tests/test_order_batch_store.py
from dataclasses import replace
from datetime import date

import pytest

from services import order_batch_store as obs
from services.order_batch_store import OrderBatchStore

WEEK_7 = date(2025, 2, 10)


@pytest.fixture
def store():
    return OrderBatchStore(today=WEEK_7)


def first_id(store):
    return store.items[0].id


# --- session start -----------------------------------------------------------

def test_new_session_has_one_blank_order(store):
    assert len(store.accumulated_orders) == 1
    assert store.current_index == 0
    assert len(store.items) == 1
    assert store.header.re_destinatarios == ""
    assert store.header.email_subject == "PED–W7–PROVEEDOR–ESPECIE"
    assert store.position_label() == "Pedido 1 de 1"


# --- field edits ---------------------------------------------------------------

def test_raw_edits_are_stored_verbatim(store):
    ok, _ = store.set_header_field("nave", "msc anna", commit=False)
    assert ok
    assert store.header.nave == "msc anna"

    store.set_item_field(first_id(store), "preciosFOB", "14.5 y 15", commit=False)
    assert store.items[0].precios_fob == "14.5 y 15"


def test_commit_normalizes(store):
    store.set_header_field("nave", "msc anna")
    store.set_item_field(first_id(store), "preciosFOB", "14.5 y 15")
    store.set_item_field(first_id(store), "calibre", "100;113")
    assert store.header.nave == "MSC ANNA"
    assert store.items[0].precios_fob == "$ 14,50 - $ 15,00"
    assert store.items[0].calibre == "100 - 113"


def test_unknown_item_is_rejected(store):
    before = store.state
    ok, msg = store.set_item_field("nope", "especie", "x")
    assert not ok
    assert msg
    assert store.state is before


def test_save_observation_capitalizes(store):
    store.save_observation(first_id(store), "daño LEVE")
    assert store.items[0].estado == "Daño leve"


def test_save_observation_on_canceled_item_is_rejected(store):
    store.toggle_cancel(first_id(store))
    ok, _ = store.save_observation(first_id(store), "nota")
    assert not ok
    assert store.items[0].estado == "CANCELADO"


# --- subject sync ----------------------------------------------------------------

def test_subject_follows_supplier_and_first_species(store):
    store.set_header_field("reDestinatarios", "Frutam sa")
    assert store.header.email_subject == "PED–W7–FRUTAMSA–ESPECIE"

    store.set_item_field(first_id(store), "especie", "manzana")
    assert store.header.email_subject == "PED–W7–FRUTAMSA–MANZANA"


def test_subject_ignores_species_of_other_rows(store):
    store.set_item_field(first_id(store), "especie", "manzana")
    store.add_item()
    store.set_item_field(store.items[1].id, "especie", "pera")
    assert store.header.email_subject == "PED–W7–PROVEEDOR–MANZANA"


def test_manual_subject_kept_until_dependency_changes(store):
    store.set_header_field("reDestinatarios", "frutam")
    store.set_header_field("emailSubject", "Mi asunto")
    assert store.header.email_subject == "Mi asunto"

    store.set_header_field("nave", "msc")
    store.set_item_field(first_id(store), "pallets", "3")
    assert store.header.email_subject == "Mi asunto"

    store.set_header_field("reDestinatarios", "agro sur")
    assert store.header.email_subject == "PED–W7–AGROSUR–ESPECIE"


def test_manual_subject_survives_navigation(store):
    store.set_header_field("emailSubject", "Asunto propio")
    store.add_order()
    store.go_to_previous()
    assert store.header.email_subject == "Asunto propio"


# --- rows ------------------------------------------------------------------------

def test_delete_sole_item_is_noop(store):
    only = first_id(store)
    ok, msg = store.delete_item(only)
    assert not ok
    assert msg == obs.MSG_LAST_ROW
    assert [i.id for i in store.items] == [only]


def test_delete_item_removes_it(store):
    store.add_item()
    second = store.items[1].id
    ok, _ = store.delete_item(first_id(store))
    assert ok
    assert [i.id for i in store.items] == [second]


def test_duplicate_inserts_after_source(store):
    store.add_item()
    source = store.items[0]
    store.set_item_field(source.id, "especie", "manzana")
    store.toggle_cancel(source.id)

    ok, _ = store.duplicate_item(source.id)
    assert ok
    assert len(store.items) == 3
    clone = store.items[1]
    assert clone.id != source.id
    assert clone.especie == "MANZANA"
    assert clone.is_canceled is False
    assert clone.estado == "CANCELADO"
    assert store.items[0].is_canceled is True


def test_item_ids_are_unique(store):
    for _ in range(5):
        store.duplicate_item(first_id(store))
    ids = [i.id for i in store.items]
    assert len(set(ids)) == len(ids)


def test_toggle_cancel_replaces_and_clears_observation(store):
    item_id = first_id(store)
    store.set_item_field(item_id, "estado", "Daño leve")

    store.toggle_cancel(item_id)
    assert store.items[0].is_canceled is True
    assert store.items[0].estado == "CANCELADO"

    store.toggle_cancel(item_id)
    assert store.items[0].is_canceled is False
    assert store.items[0].estado == ""


def test_estado_edit_rejected_on_canceled_row(store):
    item_id = first_id(store)
    store.toggle_cancel(item_id)

    ok, msg = store.set_item_field(item_id, "estado", "nota")
    assert not ok
    assert msg == obs.MSG_CANCELED_ITEM
    assert store.items[0].estado == "CANCELADO"

    ok, _ = store.set_item_field(item_id, "pallets", "3")
    assert ok
    assert store.items[0].pallets == "3"


# --- totals ------------------------------------------------------------------------

def test_total_pallets_skips_canceled_and_non_numeric(store):
    store.set_item_field(first_id(store), "pallets", "10")
    store.add_item()
    store.set_item_field(store.items[1].id, "pallets", "2.5")
    store.add_item()
    store.set_item_field(store.items[2].id, "pallets", "abc")
    assert store.total_pallets() == 12.5

    store.toggle_cancel(store.items[1].id)
    assert store.total_pallets() == 10.0


def test_total_pallets_unchanged_by_canceled_item(store):
    store.set_item_field(first_id(store), "pallets", "7")
    before = store.total_pallets()
    store.add_item()
    new_id = store.items[-1].id
    store.toggle_cancel(new_id)
    store.set_item_field(new_id, "pallets", "99")
    assert store.total_pallets() == before


# --- orders ------------------------------------------------------------------------

def test_add_order_carries_supplier_only(store):
    store.set_header_field("reDestinatarios", "frutam sa")
    store.set_header_field("deNombrePais", "china")
    store.set_header_field("nave", "msc")
    store.set_header_field("fechaCarga", "2025-02-14")
    store.set_header_field("exporta", "vpc")
    store.set_item_field(first_id(store), "especie", "manzana")

    ok, _ = store.add_order()
    assert ok
    assert len(store.accumulated_orders) == 2
    assert store.current_index == 1

    h = store.header
    assert h.re_destinatarios == "FRUTAM SA"
    assert (h.de_nombre_pais, h.nave, h.fecha_carga, h.exporta) == ("", "", "", "")
    assert h.email_subject == "PED–W7–FRUTAMSA–ESPECIE"
    assert len(store.items) == 1
    assert store.items[0].especie == ""

    saved = store.accumulated_orders[0]
    assert saved.header.nave == "MSC"
    assert saved.items[0].especie == "MANZANA"


def test_navigation_bounds_are_noops(store):
    before = store.state
    ok, msg = store.go_to_previous()
    assert not ok and msg == obs.MSG_FIRST_ORDER
    ok, msg = store.go_to_next()
    assert not ok and msg == obs.MSG_LAST_ORDER
    assert store.state is before


def test_navigation_saves_live_edits(store):
    store.set_header_field("nave", "primera")
    store.add_order()
    store.set_header_field("nave", "segunda")

    store.go_to_previous()
    assert store.current_index == 0
    assert store.header.nave == "PRIMERA"
    assert store.accumulated_orders[1].header.nave == "SEGUNDA"

    store.go_to_next()
    assert store.current_index == 1
    assert store.header.nave == "SEGUNDA"
    assert store.position_label() == "Pedido 2 de 2"


def test_accumulated_copy_is_independent_of_live_state(store):
    store.set_header_field("nave", "uno")
    store.save_live_to_accumulated()
    store.set_header_field("nave", "dos")
    assert store.accumulated_orders[0].header.nave == "UNO"


def test_save_is_idempotent(store):
    store.set_header_field("nave", "uno")
    store.save_live_to_accumulated()
    first = store.accumulated_orders
    store.save_live_to_accumulated()
    assert store.accumulated_orders == first


def test_save_with_out_of_range_index_is_noop():
    state = obs.new_session(WEEK_7)
    broken = replace(state, current_index=5)
    assert obs.save_live_to_accumulated(broken) is broken


def test_finalize_returns_orders_and_resets(store):
    store.set_header_field("reDestinatarios", "frutam")
    store.add_order()
    store.set_header_field("nave", "ultima")

    orders = store.finalize_and_reset()
    assert len(orders) == 2
    assert orders[1].header.nave == "ULTIMA"

    assert len(store.accumulated_orders) == 1
    assert store.current_index == 0
    assert store.header.re_destinatarios == ""
    assert store.header.email_subject == "PED–W7–PROVEEDOR–ESPECIE"


def test_transitions_do_not_mutate_input_state():
    state = obs.new_session(WEEK_7)
    item_id = state.items[0].id
    obs.set_item_field(state, item_id, "especie", "manzana", today=WEEK_7)
    obs.toggle_cancel(state, item_id)
    obs.add_order(state, WEEK_7)
    assert state.items[0].especie == ""
    assert state.items[0].is_canceled is False
    assert len(state.accumulated_orders) == 1
