"""Subscription manager tests."""

from delivery_hub.services.realtime import ChangeEvent, ChangeKind, SubscriptionManager


def _update(order_id: int, status: str) -> ChangeEvent:
    return ChangeEvent("orders", ChangeKind.UPDATE, new={"id": order_id, "status": status})


def test_filtered_listener_only_sees_matching_rows() -> None:
    manager = SubscriptionManager()
    seen: list[ChangeEvent] = []
    manager.subscribe("orders", {"id": 7}, seen.append)

    assert manager.publish(_update(7, "confirmed")) == 1
    assert manager.publish(_update(8, "confirmed")) == 0
    assert manager.publish(ChangeEvent("ratings", ChangeKind.INSERT, new={"id": 7})) == 0
    assert [event.row["status"] for event in seen] == ["confirmed"]


def test_one_channel_per_table_and_filter() -> None:
    manager = SubscriptionManager()
    first = manager.subscribe("orders", {"id": 1}, lambda event: None)
    second = manager.subscribe("orders", {"id": 1}, lambda event: None)
    manager.subscribe("orders", None, lambda event: None)

    assert manager.channel_count() == 2
    assert manager.listener_count("orders", {"id": 1}) == 2

    first.unsubscribe()
    assert manager.channel_count() == 2
    second.unsubscribe()
    assert manager.channel_count() == 1
    assert manager.listener_count("orders", {"id": 1}) == 0


def test_unsubscribe_is_idempotent_and_context_manager_releases() -> None:
    manager = SubscriptionManager()
    subscription = manager.subscribe("orders", {"id": 3}, lambda event: None)
    subscription.unsubscribe()
    subscription.unsubscribe()
    assert not subscription.active

    with manager.subscribe("orders", {"id": 4}, lambda event: None):
        assert manager.channel_count() == 1
    assert manager.channel_count() == 0


def test_failing_listener_does_not_block_others() -> None:
    manager = SubscriptionManager()
    seen: list[ChangeEvent] = []

    def broken(event: ChangeEvent) -> None:
        raise RuntimeError("listener crashed")

    manager.subscribe("orders", None, broken)
    manager.subscribe("orders", None, seen.append)

    assert manager.publish(_update(1, "ready")) == 2
    assert len(seen) == 1


def test_payload_shape() -> None:
    event = ChangeEvent("orders", ChangeKind.DELETE, old={"id": 5})
    assert event.row == {"id": 5}
    assert event.as_payload() == {"table": "orders", "event": "DELETE", "new": None, "old": {"id": 5}}
