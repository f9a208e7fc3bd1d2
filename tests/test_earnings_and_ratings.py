"""Driver earnings and customer rating tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from delivery_hub.core.errors import OrderNotFoundError, ValidationError
from delivery_hub.services.earnings_service import driver_earnings
from delivery_hub.services.rating_service import has_rated, submit_rating
from tests.factories import make_order, make_restaurant, make_user

NOW = datetime(2026, 5, 20, 15, 0, tzinfo=timezone.utc)


def _delivered(db, customer, restaurant, driver, fee: str, delivered_at: datetime):
    order = make_order(db, customer, restaurant, status="delivered", driver=driver, delivery_fee=Decimal(fee))
    order.updated_at = delivered_at
    db.commit()
    return order


def test_earnings_sum_delivery_fee_per_period(db) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    driver = make_user(db, "dan@example.com", "DRIVER")
    other_driver = make_user(db, "eve@example.com", "DRIVER")
    restaurant = make_restaurant(db)
    _delivered(db, customer, restaurant, driver, "5.00", NOW - timedelta(hours=2))
    _delivered(db, customer, restaurant, driver, "7.50", NOW - timedelta(days=3))
    _delivered(db, customer, restaurant, driver, "6.00", NOW - timedelta(days=20))
    _delivered(db, customer, restaurant, driver, "4.00", NOW - timedelta(days=90))
    _delivered(db, customer, restaurant, other_driver, "9.00", NOW - timedelta(hours=1))
    make_order(db, customer, restaurant, status="picked_up", driver=driver)

    summary = driver_earnings(db, driver.id, NOW)

    assert (summary.today.deliveries, summary.today.earnings) == (1, Decimal("5.00"))
    assert (summary.week.deliveries, summary.week.earnings) == (2, Decimal("12.50"))
    assert (summary.month.deliveries, summary.month.earnings) == (3, Decimal("18.50"))
    assert (summary.total.deliveries, summary.total.earnings) == (4, Decimal("22.50"))
    assert summary.rating_average is None
    assert summary.rating_count == 0


def test_rating_flow(db) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    stranger = make_user(db, "eve@example.com", "CUSTOMER")
    driver = make_user(db, "dan@example.com", "DRIVER")
    restaurant = make_restaurant(db)
    order = _delivered(db, customer, restaurant, driver, "5.00", NOW)

    with pytest.raises(OrderNotFoundError):
        submit_rating(db, order_id=order.id, customer_id=stranger.id, restaurant_rating=5)
    with pytest.raises(ValidationError):
        submit_rating(db, order_id=order.id, customer_id=customer.id, restaurant_rating=6)

    rating = submit_rating(db, order_id=order.id, customer_id=customer.id, restaurant_rating=4, driver_rating=5, comment=" Rico ")

    assert rating.driver_id == driver.id
    assert rating.comment == "Rico"
    assert has_rated(db, order.id)
    with pytest.raises(ValidationError):
        submit_rating(db, order_id=order.id, customer_id=customer.id, restaurant_rating=3)

    summary = driver_earnings(db, driver.id, NOW)
    assert summary.rating_average == 5.0
    assert summary.rating_count == 1


def test_only_delivered_orders_can_be_rated(db) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    order = make_order(db, customer, make_restaurant(db), status="ready")

    with pytest.raises(ValidationError):
        submit_rating(db, order_id=order.id, customer_id=customer.id, restaurant_rating=5)


def test_driver_rating_needs_a_driver(db) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    order = make_order(db, customer, make_restaurant(db), status="delivered")

    with pytest.raises(ValidationError):
        submit_rating(db, order_id=order.id, customer_id=customer.id, restaurant_rating=5, driver_rating=4)
