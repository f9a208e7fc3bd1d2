"""Streamlit driver app: go online, claim, pick up and deliver orders."""

import streamlit as st

from delivery_hub.models import User
from delivery_hub.services.driver_service import available_orders, driver_orders, ensure_driver_profile, set_online, update_position
from delivery_hub.services.earnings_service import driver_earnings
from delivery_hub.services.export_service import status_label
from delivery_hub.services.order_controller import ProofPhoto
from delivery_hub.services.order_status import OrderEvent
from streamlit_app.common import (
    actor_context,
    build_controller,
    get_session,
    render_order_chat,
    require_login,
    run_action,
    show_result,
)

st.set_page_config(page_title="Repartidor", layout="centered")
st.title("Repartidor")
session_user = require_login({"DRIVER"})

with get_session() as db:
    user = db.get(User, session_user.user_id)
    profile = ensure_driver_profile(db, user)
    controller = build_controller(db)
    ctx = actor_context()

    online = st.toggle("En línea", value=profile.is_online)
    if online != profile.is_online:
        set_online(db, user, online)

    with st.expander("Mi ubicación"):
        lat = st.number_input("Latitud", value=profile.current_latitude or 0.0, format="%.6f")
        lon = st.number_input("Longitud", value=profile.current_longitude or 0.0, format="%.6f")
        if st.button("Actualizar ubicación"):
            run_action(lambda: update_position(db, user, lat, lon), "Ubicación actualizada")

    tab_available, tab_active, tab_history, tab_earnings = st.tabs(["Disponibles", "En curso", "Historial", "Ganancias"])

    with tab_available:
        for order in available_orders(db):
            restaurant = order.restaurant.name if order.restaurant else "-"
            st.write(f"#{order.id} · {restaurant} → {order.delivery_address} · S/{order.delivery_fee:.2f}")
            if st.button("Tomar pedido", key=f"claim_{order.id}"):
                result = controller.claim_order(order.id, ctx)
                if result.claimed:
                    show_result(result.warnings, f"Pedido #{order.id} asignado")
                elif result.reason == "already_taken":
                    st.warning("Otro repartidor tomó este pedido")
                else:
                    st.warning("El pedido cambió de estado")

    with tab_active:
        for order in driver_orders(db, user.id, active=True):
            st.write(f"#{order.id} · {status_label(order.status)} · {order.delivery_address}")
            eta = controller.estimate_eta(order)
            if eta is not None:
                st.caption(f"Tiempo estimado: {eta} min")
            if order.status == "picked_up":
                photo = st.file_uploader("Foto de entrega (opcional)", type=["jpg", "jpeg", "png"], key=f"photo_{order.id}")
                if st.button("Marcar entregado", key=f"deliver_{order.id}"):
                    proof = ProofPhoto(data=photo.getvalue(), extension=photo.name.rsplit(".", 1)[-1]) if photo else None
                    run_action(
                        lambda order_id=order.id, proof=proof: controller.apply_event(
                            order_id, ctx, OrderEvent.FINISH_DELIVERY, proof=proof
                        ).warnings,
                        "Pedido entregado",
                    )
            elif st.button("Recogido", key=f"pickup_{order.id}"):
                run_action(
                    lambda order_id=order.id: controller.apply_event(order_id, ctx, OrderEvent.MARK_EN_ROUTE).warnings,
                    "En camino",
                )
            with st.expander("Chat con el cliente"):
                render_order_chat(db, order.id)

    with tab_history:
        st.write(
            [
                {"id": order.id, "estado": status_label(order.status), "tarifa": f"S/{order.delivery_fee:.2f}"}
                for order in driver_orders(db, user.id, active=False)
            ]
        )

    with tab_earnings:
        summary = driver_earnings(db, user.id)
        cols = st.columns(4)
        for col, (label, period) in zip(
            cols,
            [("Hoy", summary.today), ("7 días", summary.week), ("30 días", summary.month), ("Total", summary.total)],
        ):
            col.metric(label, f"S/{period.earnings:.2f}", f"{period.deliveries} entregas")
        if summary.rating_average is not None:
            st.caption(f"Calificación promedio: {summary.rating_average:.1f} ({summary.rating_count})")
