import json

import streamlit as st
import streamlit.components.v1 as components

import config
from services.export_service import batch_summary, batch_to_dataframe, build_export
from services.html_renderer import render_preview

CLIPBOARD_TEMPLATE = """
<div id="pedido-html" style="position: absolute; left: -9999px;"></div>
<button id="copy-btn" style="padding: 8px 14px; border-radius: 6px; border: none;
        background: #2563eb; color: #fff; font-weight: 600; cursor: pointer;">
    📋 Copiar pedido al portapapeles
</button>
<span id="copy-status" style="margin-left: 10px; font-family: sans-serif; color: #15803d;"></span>
<script>
const content = __CONTENT__;
const holder = document.getElementById("pedido-html");
holder.innerHTML = content;

function copyWithSelection() {
    const range = document.createRange();
    range.selectNodeContents(holder);
    const selection = window.getSelection();
    selection.removeAllRanges();
    selection.addRange(range);
    document.execCommand("copy");
    selection.removeAllRanges();
}

document.getElementById("copy-btn").addEventListener("click", async () => {
    try {
        const item = new ClipboardItem({
            "text/html": new Blob([content], {type: "text/html"}),
            "text/plain": new Blob([holder.innerText], {type: "text/plain"}),
        });
        await navigator.clipboard.write([item]);
    } catch (e) {
        copyWithSelection();
    }
    document.getElementById("copy-status").innerText = "¡Copiado!";
});
</script>
"""


def clipboard_button(html_content: str) -> None:
    """Button that copies the rendered batch as rich text."""
    payload = json.dumps(html_content).replace("</", "<\\/")
    components.html(CLIPBOARD_TEMPLATE.replace("__CONTENT__", payload), height=60)


@st.dialog("Opciones de Pedido Finalizado", width="large")
def finalize_dialog(store, state_name: str):
    """
    Preview the batch, or send it: the batch is exported and the
    session starts over with a single blank order.
    """
    orders = store.snapshot_orders()

    st.write("Tu pedido está listo para ser enviado.")
    st.dataframe(batch_summary(orders), hide_index=True, use_container_width=True)

    col_preview, col_send = st.columns(2)

    with col_preview:
        show_preview = st.button("👁️ Previsualizar", key="dialog_preview")

    with col_send:
        if st.button("✉️ Copiar y abrir correo", type="primary", key="dialog_send"):
            exported = store.finalize_and_reset()
            payload = build_export(
                exported,
                user_agent=st.context.headers.get("User-Agent"),
                recipient=config.MAIL_RECIPIENT,
                mail_client=config.MAIL_CLIENT,
            )
            st.session_state[state_name] = {
                "payload": payload,
                "csv": batch_to_dataframe(exported).to_csv(index=False).encode("utf-8"),
            }
            st.session_state["resync_widgets"] = True
            st.rerun()

    if show_preview:
        st.subheader("Previsualización del Pedido")
        components.html(render_preview(orders), height=520, scrolling=True)

    if st.button("Cerrar", key="dialog_close"):
        st.rerun()


def export_panel(export: dict) -> None:
    """Clipboard copy, mail link and downloads for the last sent batch."""
    payload = export["payload"]

    if payload.order_count == 0:
        st.info("No hay pedidos para enviar.")
        return

    st.success(f"{payload.order_count} pedido(s) listos. Asunto: **{payload.subject}**")
    clipboard_button(payload.html)

    col_mail, col_html, col_csv = st.columns(3)
    with col_mail:
        st.link_button("Abrir correo", payload.mail_link)
    with col_html:
        st.download_button(
            "Descargar HTML",
            data=payload.html.encode("utf-8"),
            file_name=f"{payload.subject or 'pedidos'}.html",
            mime="text/html",
        )
    with col_csv:
        st.download_button(
            "Descargar CSV",
            data=export["csv"],
            file_name="pedidos.csv",
            mime="text/csv",
        )
