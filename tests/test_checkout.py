"""Checkout and coupon tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from delivery_hub.core.errors import MissingFieldError, ValidationError
from delivery_hub.models import Coupon, Product
from delivery_hub.services.checkout_service import CheckoutLine, compute_discount, place_order, resolve_coupon
from delivery_hub.services.data_store import DataStore
from delivery_hub.services.notifications import OrderNotifier
from delivery_hub.services.realtime import ChangeEvent, ChangeKind
from tests.factories import FailingDispatcher, make_restaurant, make_user


def _coupon(db, **overrides) -> Coupon:
    values = {"code": "BIENVENIDO", "discount_type": "percentage", "discount_value": Decimal("10"), "is_active": True}
    values.update(overrides)
    coupon = Coupon(**values)
    db.add(coupon)
    db.commit()
    return coupon


def _product(db, restaurant) -> Product:
    return db.scalar(select(Product).where(Product.restaurant_id == restaurant.id).limit(1))


def test_place_order_computes_totals_and_publishes_insert(db, controller, subscriptions) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    restaurant = make_restaurant(db)
    product = _product(db, restaurant)
    _coupon(db, max_discount=Decimal("3.00"))
    seen: list[ChangeEvent] = []
    subscriptions.subscribe("orders", None, seen.append)

    order, warnings = place_order(
        controller.store,
        controller.notifier,
        customer=customer,
        restaurant_id=restaurant.id,
        lines=[CheckoutLine(product_id=product.id, quantity=2)],
        delivery_address=" Jr. Lampa 456 ",
        tip=Decimal("2.50"),
        coupon_code="bienvenido",
    )

    assert warnings == []
    assert order.status == "pending"
    assert order.driver_id is None
    assert order.subtotal == Decimal("40.00")
    assert order.delivery_fee == Decimal("5.00")
    assert order.discount == Decimal("3.00")
    assert order.total == Decimal("44.50")
    assert order.delivery_address == "Jr. Lampa 456"
    assert order.coupon_code == "BIENVENIDO"
    assert [item.quantity for item in order.items] == [2]
    assert db.scalar(select(Coupon.current_uses)) == 1
    assert [event.kind for event in seen] == [ChangeKind.INSERT]


def test_place_order_validates_input(db, controller) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    restaurant = make_restaurant(db)
    other = make_restaurant(db)
    product = _product(db, restaurant)
    base = {"customer": customer, "restaurant_id": restaurant.id, "delivery_address": "Av. Sol 1"}

    with pytest.raises(ValidationError):
        place_order(controller.store, controller.notifier, lines=[], **base)
    with pytest.raises(MissingFieldError):
        place_order(controller.store, controller.notifier, lines=[CheckoutLine(product.id, 1)], **{**base, "delivery_address": " "})
    with pytest.raises(ValidationError):
        place_order(controller.store, controller.notifier, lines=[CheckoutLine(_product(db, other).id, 1)], **base)
    with pytest.raises(ValidationError):
        place_order(controller.store, controller.notifier, lines=[CheckoutLine(product.id, 1)], payment_method="bitcoin", **base)


def test_driver_notification_failure_is_returned_as_warning(db, subscriptions) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    driver = make_user(db, "dan@example.com", "DRIVER", push_token="ExponentPushToken[dan]")
    driver.driver_profile.is_online = True
    db.commit()
    restaurant = make_restaurant(db)

    order, warnings = place_order(
        DataStore(db, subscriptions),
        OrderNotifier(db, FailingDispatcher()),
        customer=customer,
        restaurant_id=restaurant.id,
        lines=[CheckoutLine(_product(db, restaurant).id, 1)],
        delivery_address="Av. Sol 1",
    )

    assert order.id is not None
    assert warnings == ["Nearby drivers could not be notified"]


def test_coupon_rules(db) -> None:
    now = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
    _coupon(db, code="VENCIDO", valid_until=now - timedelta(days=1))
    _coupon(db, code="MINIMO", min_order_amount=Decimal("50.00"))
    _coupon(db, code="AGOTADO", max_uses=1, current_uses=1)
    _coupon(db, code="APAGADO", is_active=False)

    for code in ("VENCIDO", "MINIMO", "AGOTADO", "APAGADO", "NOEXISTE"):
        with pytest.raises(ValidationError):
            resolve_coupon(db, code, Decimal("20.00"), now)


def test_fixed_discount_never_exceeds_subtotal(db) -> None:
    coupon = _coupon(db, code="FIJO", discount_type="fixed", discount_value=Decimal("30.00"))
    assert compute_discount(coupon, Decimal("12.00")) == Decimal("12.00")
    assert compute_discount(coupon, Decimal("40.00")) == Decimal("30.00")
