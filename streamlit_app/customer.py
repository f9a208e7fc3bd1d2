"""Streamlit customer app: browse, checkout, track and rate orders."""

from decimal import Decimal

import streamlit as st
from sqlalchemy import select

from delivery_hub.models import Order, Product, Restaurant, User
from delivery_hub.core.errors import DeliveryHubError
from delivery_hub.services.app_state import CartItem
from delivery_hub.services.checkout_service import PAYMENT_METHODS, CheckoutLine, place_order
from delivery_hub.services.export_service import status_label
from delivery_hub.services.order_status import HAPPY_PATH, OrderEvent, allowed_events, status_step
from delivery_hub.services.rating_service import has_rated, submit_rating
from streamlit_app.common import (
    actor_context,
    app_state,
    build_controller,
    get_session,
    render_order_chat,
    require_login,
    run_action,
    show_result,
)

st.set_page_config(page_title="Pedidos", layout="centered")
st.title("Pedidos")
session_user = require_login({"CUSTOMER"})
cart = app_state().cart

with get_session() as db:
    controller = build_controller(db)
    ctx = actor_context()
    tab_menu, tab_cart, tab_orders = st.tabs(["Restaurantes", f"Carrito ({cart.item_count()})", "Mis pedidos"])

    with tab_menu:
        restaurants = db.scalars(select(Restaurant).where(Restaurant.is_active.is_(True)).order_by(Restaurant.name)).all()
        by_label = {restaurant.name: restaurant for restaurant in restaurants}
        if by_label:
            restaurant = by_label[st.selectbox("Restaurante", list(by_label))]
            products = db.scalars(
                select(Product).where(Product.restaurant_id == restaurant.id, Product.is_available.is_(True)).order_by(Product.name)
            ).all()
            for product in products:
                col_name, col_add = st.columns([4, 1])
                col_name.write(f"{product.name} · S/{product.price:.2f}")
                if col_add.button("Agregar", key=f"add_{product.id}"):
                    if cart.restaurant_id not in (None, restaurant.id):
                        st.info("Tu carrito anterior se vació: solo se puede pedir a un restaurante a la vez")
                    cart.add(restaurant.id, restaurant.name, CartItem(product_id=product.id, name=product.name, unit_price=product.price))
        else:
            st.info("No hay restaurantes disponibles")

    with tab_cart:
        if cart.is_empty():
            st.info("Tu carrito está vacío")
        else:
            st.write(f"Restaurante: {cart.restaurant_name}")
            for item in list(cart.items):
                quantity = st.number_input(item.name, min_value=0, value=item.quantity, key=f"qty_{item.product_id}")
                if quantity != item.quantity:
                    cart.update_quantity(item.product_id, int(quantity))
            address = st.text_input("Dirección de entrega")
            coupon = st.text_input("Cupón")
            tip = st.number_input("Propina", min_value=0.0, value=0.0, step=1.0)
            payment = st.selectbox("Pago", list(PAYMENT_METHODS))
            st.write(f"Subtotal: S/{cart.subtotal():.2f}")
            if st.button("Confirmar pedido"):
                customer = db.get(User, session_user.user_id)
                try:
                    order, warnings = place_order(
                        controller.store,
                        controller.notifier,
                        customer=customer,
                        restaurant_id=cart.restaurant_id,
                        lines=[CheckoutLine(item.product_id, item.quantity, item.notes) for item in cart.items],
                        delivery_address=address,
                        payment_method=payment,
                        tip=Decimal(str(tip)),
                        coupon_code=coupon or None,
                    )
                except DeliveryHubError as exc:
                    st.error(exc.message)
                else:
                    cart.clear()
                    show_result(warnings, f"Pedido #{order.id} creado · Total S/{order.total:.2f}")

    with tab_orders:
        orders = db.scalars(select(Order).where(Order.user_id == session_user.user_id).order_by(Order.created_at.desc())).all()
        for order in orders:
            with st.expander(f"Pedido #{order.id} · {status_label(order.status)}"):
                step = status_step(order.status)
                if step >= 0:
                    st.progress((step + 1) / len(HAPPY_PATH))
                eta = controller.estimate_eta(order)
                if eta is not None:
                    st.caption(f"Llega en ~{eta} min")
                if order.driver_id is not None and st.toggle("Chat con el repartidor", key=f"chat_open_{order.id}"):
                    render_order_chat(db, order.id)
                if OrderEvent.CANCEL in allowed_events(order.status, ctx.actor):
                    reason = st.text_input("Motivo", key=f"reason_{order.id}")
                    if st.button("Cancelar pedido", key=f"cancel_{order.id}"):
                        run_action(
                            lambda order_id=order.id, reason=reason: controller.apply_event(
                                order_id, ctx, OrderEvent.CANCEL, reason=reason
                            ).warnings,
                            "Pedido cancelado",
                        )
                if order.status == "delivered" and not has_rated(db, order.id):
                    restaurant_score = st.slider("Restaurante", 1, 5, 5, key=f"rr_{order.id}")
                    driver_score = st.slider("Repartidor", 1, 5, 5, key=f"dr_{order.id}") if order.driver_id else None
                    if st.button("Calificar", key=f"rate_{order.id}"):
                        run_action(
                            lambda order_id=order.id, rs=restaurant_score, ds=driver_score: submit_rating(
                                db,
                                order_id=order_id,
                                customer_id=session_user.user_id,
                                restaurant_rating=rs,
                                driver_rating=ds,
                            ),
                            "Gracias por tu calificación",
                        )
