"""Cross-process delivery of change events through the Redis relay."""

import json

import redis

from delivery_hub.services.change_relay import RedisChangeRelay, build_subscriptions
from delivery_hub.services.realtime import ChangeEvent, ChangeKind, SubscriptionManager


class FakeRedisBus:
    """Stands in for one Redis server: every publish reaches every attached relay."""

    def __init__(self) -> None:
        self.relays: list[RedisChangeRelay] = []
        self.published: list[tuple[str, str]] = []

    def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        for relay in self.relays:
            if relay.channel == channel:
                relay.handle_message({"type": "message", "channel": channel.encode(), "data": message.encode()})
        return len(self.relays)


class DownRedis:
    def publish(self, channel: str, message: str) -> int:
        raise redis.ConnectionError("connection refused")


def _attach(bus: FakeRedisBus) -> SubscriptionManager:
    manager = SubscriptionManager()
    relay = RedisChangeRelay(bus, manager)
    manager.relay = relay
    bus.relays.append(relay)
    return manager


def _confirmed(order_id: int) -> ChangeEvent:
    return ChangeEvent("orders", ChangeKind.UPDATE, new={"id": order_id, "status": "confirmed"})


def test_event_published_in_one_process_reaches_another() -> None:
    bus = FakeRedisBus()
    streamlit_side = _attach(bus)
    api_side = _attach(bus)
    seen: list[ChangeEvent] = []
    api_side.subscribe("orders", {"id": 3}, seen.append)

    streamlit_side.publish(_confirmed(3))

    assert seen == [_confirmed(3)]
    channel, message = bus.published[0]
    assert channel == "delivery_hub:changes"
    assert json.loads(message)["new"] == {"id": 3, "status": "confirmed"}


def test_own_events_are_delivered_once() -> None:
    bus = FakeRedisBus()
    manager = _attach(bus)
    seen: list[ChangeEvent] = []
    manager.subscribe("orders", None, seen.append)

    assert manager.publish(_confirmed(1)) == 1
    assert len(seen) == 1


def test_redis_outage_keeps_local_delivery() -> None:
    manager = SubscriptionManager()
    manager.relay = RedisChangeRelay(DownRedis(), manager)
    seen: list[ChangeEvent] = []
    manager.subscribe("orders", {"id": 5}, seen.append)

    assert manager.publish(_confirmed(5)) == 1
    assert seen == [_confirmed(5)]


def test_malformed_and_control_messages_are_ignored() -> None:
    manager = SubscriptionManager()
    relay = RedisChangeRelay(FakeRedisBus(), manager)
    seen: list[ChangeEvent] = []
    manager.subscribe("orders", None, seen.append)

    assert relay.handle_message({"type": "subscribe", "data": 1}) == 0
    assert relay.handle_message({"type": "message", "data": b"not json"}) == 0
    assert relay.handle_message({"type": "message", "data": json.dumps({"table": "orders", "event": "BOGUS"})}) == 0
    assert seen == []


def test_without_url_changes_stay_in_process() -> None:
    assert build_subscriptions("").relay is None
