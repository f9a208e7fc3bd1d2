"""Streamlit dashboard for admins and restaurant owners."""

from datetime import date, datetime, timezone

import streamlit as st

from delivery_hub.services.driver_service import online_drivers
from delivery_hub.services.export_service import (
    export_filename,
    list_orders,
    order_export_row,
    render_orders_csv,
    render_orders_pdf,
    status_label,
)
from delivery_hub.services.order_status import ORDER_STATUSES, allowed_events
from delivery_hub.services.stats_service import dashboard_stats
from streamlit_app.common import actor_context, build_controller, get_session, now_string, require_login, run_action


st.set_page_config(page_title="Panel de pedidos", layout="wide")
st.title("Panel de pedidos")
user = require_login({"ADMIN", "RESTAURANT"})
st.caption(f"Última actualización: {now_string()}")

status_options = ["todos", *ORDER_STATUSES]
selected_status = st.selectbox("Estado", status_options, format_func=lambda value: "Todos" if value == "todos" else status_label(value))
status_filter = None if selected_status == "todos" else selected_status
owner_id = None if user.role == "ADMIN" else user.user_id

with get_session() as db:
    stats = dashboard_stats(db, owner_id=owner_id)
    metrics = st.columns(4)
    metrics[0].metric("Pedidos hoy", stats.orders_today)
    metrics[1].metric("Ventas hoy", f"S/{stats.revenue_today:.2f}")
    metrics[2].metric("Ventas totales", f"S/{stats.revenue_total:.2f}")
    metrics[3].metric("Restaurantes activos", stats.active_restaurants)
    with st.expander("Analítica"):
        st.bar_chart(
            [{"Día": figure.day.isoformat(), "Ventas": float(figure.revenue)} for figure in stats.daily],
            x="Día",
            y="Ventas",
        )
        st.write("Productos más vendidos")
        st.dataframe([{"Producto": p.name, "Cantidad": p.quantity, "Ventas": f"S/{p.revenue:.2f}"} for p in stats.top_products])

    orders = list_orders(db, status=status_filter, owner_id=owner_id, limit=100)
    rows = [order_export_row(order) for order in orders]

    col_csv, col_pdf = st.columns(2)
    col_csv.download_button("Exportar CSV", render_orders_csv(rows), file_name=export_filename(), mime="text/csv")
    if col_pdf.button("Generar PDF"):
        meta = {"today": date.today().isoformat(), "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")}
        col_pdf.download_button(
            "Descargar PDF",
            render_orders_pdf(rows, meta),
            file_name=export_filename(extension="pdf"),
            mime="application/pdf",
        )

    st.dataframe(
        [
            {
                "ID": row["id"],
                "Cliente": row["customer_name"],
                "Restaurante": row["restaurant_name"],
                "Repartidor": row["driver_name"] or "-",
                "Estado": status_label(row["status"]),
                "Total": f"S/{row['total']:.2f}",
            }
            for row in rows
        ],
        use_container_width=True,
    )

    controller = build_controller(db)
    ctx = actor_context()
    drivers = online_drivers(db)

    st.subheader("Acciones")
    for order in orders:
        events = [event.value for event in allowed_events(order.status, ctx.actor)]
        if not events and user.role != "ADMIN":
            continue
        with st.expander(f"Pedido #{order.id} · {status_label(order.status)}"):
            if events:
                event = st.selectbox("Evento", events, key=f"event_{order.id}")
                reason = st.text_input("Motivo (cancelación)", key=f"reason_{order.id}") if event == "cancel" else None
                if st.button("Aplicar", key=f"apply_{order.id}"):
                    run_action(
                        lambda order_id=order.id, event=event, reason=reason: controller.apply_event(
                            order_id, ctx, event, reason=reason
                        ).warnings,
                        "Estado actualizado",
                    )
            if user.role == "ADMIN" and drivers:
                choices = {"Sin repartidor": None, **{f"{driver.full_name} (#{driver.id})": driver.id for driver, _ in drivers}}
                label = st.selectbox("Reasignar repartidor", list(choices), key=f"driver_{order.id}")
                if st.button("Reasignar", key=f"reassign_{order.id}"):
                    run_action(lambda order_id=order.id, driver_id=choices[label]: controller.reassign_driver(order_id, ctx, driver_id), "Repartidor actualizado")

    st.subheader("Repartidores en línea")
    st.write(
        [
            {"id": driver.id, "nombre": driver.full_name, "lat": profile.current_latitude, "lon": profile.current_longitude}
            for driver, profile in drivers
        ]
    )
