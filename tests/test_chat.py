"""Order chat: participants, ordering, read receipts and change events."""

import pytest

from delivery_hub.core.errors import MissingFieldError, OrderNotFoundError, PermissionDeniedError, ValidationError
from delivery_hub.services.chat_service import MAX_MESSAGE_LENGTH, OrderChat
from delivery_hub.services.order_controller import ActorContext
from delivery_hub.services.order_status import Actor
from delivery_hub.services.realtime import ChangeEvent
from tests.factories import make_order, make_restaurant, make_user


@pytest.fixture
def chat(db, subscriptions) -> OrderChat:
    return OrderChat(db, subscriptions)


@pytest.fixture
def parties(db):
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    driver = make_user(db, "dan@example.com", "DRIVER")
    owner = make_user(db, "owner@example.com", "RESTAURANT")
    order = make_order(db, customer, make_restaurant(db, owner), status="picked_up", driver=driver)
    return {
        "order_id": order.id,
        "customer": ActorContext(customer.id, Actor.CUSTOMER),
        "driver": ActorContext(driver.id, Actor.DRIVER),
        "owner": ActorContext(owner.id, Actor.RESTAURANT),
    }


def test_customer_and_driver_exchange_messages_in_order(chat, parties) -> None:
    order_id = parties["order_id"]
    chat.send(order_id, parties["customer"], "  Hola, estoy en la puerta  ")
    chat.send(order_id, parties["driver"], "Llego en 2 minutos")

    messages = chat.list_messages(order_id, parties["driver"])

    assert [(m.sender_type, m.content) for m in messages] == [
        ("customer", "Hola, estoy en la puerta"),
        ("driver", "Llego en 2 minutos"),
    ]
    assert all(m.read_at is None for m in messages)


def test_mark_read_only_touches_messages_from_others(chat, parties) -> None:
    order_id = parties["order_id"]
    chat.send(order_id, parties["customer"], "Uno")
    chat.send(order_id, parties["customer"], "Dos")
    chat.send(order_id, parties["driver"], "Ok")

    assert chat.unread_count(order_id, parties["driver"]) == 2
    assert chat.mark_read(order_id, parties["driver"]) == 2
    assert chat.mark_read(order_id, parties["driver"]) == 0
    assert chat.unread_count(order_id, parties["driver"]) == 0
    assert chat.unread_count(order_id, parties["customer"]) == 1

    by_content = {m.content: m for m in chat.list_messages(order_id, parties["customer"])}
    assert by_content["Uno"].read_at is not None
    assert by_content["Ok"].read_at is None


def test_new_messages_and_receipts_are_published(chat, parties, subscriptions) -> None:
    order_id = parties["order_id"]
    seen: list[ChangeEvent] = []
    subscriptions.subscribe("messages", {"order_id": order_id}, seen.append)

    sent = chat.send(order_id, parties["driver"], "En camino")
    chat.mark_read(order_id, parties["customer"])

    assert [(event.kind.value, event.row["id"]) for event in seen] == [("INSERT", sent.id), ("UPDATE", sent.id)]
    assert seen[0].row["read_at"] is None
    assert seen[1].row["read_at"] is not None


def test_outsiders_cannot_read_or_write(chat, parties, db) -> None:
    order_id = parties["order_id"]
    stranger = make_user(db, "bob@example.com", "CUSTOMER")
    other_driver = make_user(db, "eve@example.com", "DRIVER")

    with pytest.raises(OrderNotFoundError):
        chat.list_messages(order_id, ActorContext(stranger.id, Actor.CUSTOMER))
    with pytest.raises(PermissionDeniedError):
        chat.send(order_id, ActorContext(other_driver.id, Actor.DRIVER), "Hola")
    with pytest.raises(PermissionDeniedError):
        chat.list_messages(order_id, parties["owner"])
    with pytest.raises(OrderNotFoundError):
        chat.send(9999, parties["customer"], "Hola")


def test_message_content_is_validated(chat, parties) -> None:
    order_id = parties["order_id"]
    with pytest.raises(MissingFieldError):
        chat.send(order_id, parties["customer"], "   ")
    with pytest.raises(ValidationError):
        chat.send(order_id, parties["customer"], "x" * (MAX_MESSAGE_LENGTH + 1))
    assert chat.list_messages(order_id, parties["customer"]) == []
