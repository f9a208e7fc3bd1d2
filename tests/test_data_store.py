"""Conditional write tests for the order data store."""

import pytest

from delivery_hub.core.errors import InvalidTransitionError
from delivery_hub.services.data_store import DataStore
from delivery_hub.services.realtime import ChangeEvent, ChangeKind, SubscriptionManager
from tests.factories import make_order, make_restaurant, make_user


def test_conditional_update_applies_once(db, subscriptions: SubscriptionManager) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    driver_a = make_user(db, "a@example.com", "DRIVER")
    driver_b = make_user(db, "b@example.com", "DRIVER")
    order = make_order(db, customer, make_restaurant(db))
    store = DataStore(db, subscriptions)

    first = store.update_order(order.id, {"driver_id": driver_a.id}, precondition={"driver_id": None, "status": "pending"})
    second = store.update_order(order.id, {"driver_id": driver_b.id}, precondition={"driver_id": None, "status": "pending"})

    assert first == 1
    assert second == 0
    assert store.read_order(order.id).driver_id == driver_a.id


def test_update_publishes_change_only_when_rows_match(db, subscriptions: SubscriptionManager) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    order = make_order(db, customer, make_restaurant(db))
    store = DataStore(db, subscriptions)
    seen: list[ChangeEvent] = []
    store.subscribe_to_table("orders", {"id": order.id}, seen.append)

    store.update_order(order.id, {"status": "confirmed"}, precondition={"status": "pending"})
    store.update_order(order.id, {"status": "confirmed"}, precondition={"status": "pending"})

    assert len(seen) == 1
    assert seen[0].kind == ChangeKind.UPDATE
    assert seen[0].new["status"] == "confirmed"
    assert seen[0].new["id"] == order.id


def test_update_rejects_empty_patch_and_unknown_columns(db, subscriptions: SubscriptionManager) -> None:
    store = DataStore(db, subscriptions)
    with pytest.raises(ValueError):
        store.update_order(1, {})
    with pytest.raises(ValueError):
        store.update_order(1, {"colour": "red"})
    with pytest.raises(ValueError):
        store.update_order(1, {"status": "confirmed"}, precondition={"colour": "red"})


def test_missing_order_reads_none_and_updates_nothing(db, subscriptions: SubscriptionManager) -> None:
    store = DataStore(db, subscriptions)
    assert store.read_order(999) is None
    assert store.update_order(999, {"status": "confirmed"}) == 0


def test_update_refuses_status_jumps_the_state_machine_forbids(db, subscriptions: SubscriptionManager) -> None:
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    order = make_order(db, customer, make_restaurant(db))
    store = DataStore(db, subscriptions)

    with pytest.raises(InvalidTransitionError):
        store.update_order(order.id, {"status": "delivered"}, precondition={"status": "pending"})
    with pytest.raises(InvalidTransitionError):
        store.update_order(order.id, {"status": "confirmed"}, precondition={"status": "cancelled"})

    assert store.read_order(order.id).status == "pending"
