# tests/test_export_service.py
from datetime import date

from domain.models import LineItem, OrderHeader, OrderRecord
from services.export_service import (
    batch_summary,
    batch_to_dataframe,
    build_export,
    build_mail_link,
    is_mobile_user_agent,
    resolve_mobile,
)

WEEK_7 = date(2025, 2, 10)
SUBJECT = "PED–W7–FRUTAMSA–MANZANA"
ENCODED_SUBJECT = "PED%E2%80%93W7%E2%80%93FRUTAMSA%E2%80%93MANZANA"

IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15"
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0"


def sample_orders():
    return [
        OrderRecord(
            header=OrderHeader(re_destinatarios="FRUTAM SA", nave="UNO"),
            items=[LineItem(pallets="10", especie="MANZANA"), LineItem(pallets="4", is_canceled=True)],
        ),
        OrderRecord(
            header=OrderHeader(re_destinatarios="FRUTAM SA", nave="DOS"),
            items=[LineItem(pallets="3", especie="MANZANA")],
        ),
    ]


def test_mobile_detection():
    assert is_mobile_user_agent(IPHONE_UA)
    assert is_mobile_user_agent("Mozilla/5.0 (Linux; Android 14)")
    assert not is_mobile_user_agent(DESKTOP_UA)
    assert not is_mobile_user_agent(None)


def test_forced_mail_client_overrides_user_agent():
    assert resolve_mobile(DESKTOP_UA, "mailto") is True
    assert resolve_mobile(IPHONE_UA, "gmail") is False
    assert resolve_mobile(IPHONE_UA, "auto") is True


def test_gmail_link():
    link = build_mail_link(SUBJECT, mobile=False)
    assert link == (
        "https://mail.google.com/mail/?view=cm&fs=1&tf=1&to=&su="
        + ENCODED_SUBJECT
        + "&body="
    )


def test_mailto_link():
    link = build_mail_link(SUBJECT, recipient="compras@ejemplo.cl", mobile=True)
    assert link.startswith("mailto:compras@ejemplo.cl?subject=" + ENCODED_SUBJECT + "&body=")
    assert "portapapeles" in link


def test_build_export_uses_consolidated_subject():
    payload = build_export(sample_orders(), user_agent=DESKTOP_UA, today=WEEK_7)
    assert payload.order_count == 2
    assert payload.subject == SUBJECT
    assert "Pedido #2" in payload.html
    assert payload.mail_link.startswith("https://mail.google.com/")


def test_build_export_empty_batch():
    payload = build_export([], today=WEEK_7)
    assert payload.order_count == 0
    assert payload.mail_link == ""
    assert "No hay pedidos para previsualizar." in payload.html


def test_batch_to_dataframe_one_row_per_item():
    df = batch_to_dataframe(sample_orders())
    assert len(df) == 3
    assert list(df["Pedido"]) == [1, 1, 2]
    assert list(df["Nave"]) == ["UNO", "UNO", "DOS"]
    assert list(df["Cancelado"]) == [False, True, False]
    assert df["Pallets"].sum() == 17.0


def test_batch_summary_totals_skip_canceled():
    df = batch_summary(sample_orders())
    assert list(df["Pallets"]) == [10.0, 3.0]
    assert list(df["Filas"]) == [2, 1]


def test_batch_to_dataframe_empty():
    df = batch_to_dataframe([])
    assert df.empty
    assert "Precios FOB" in df.columns
