"""WebSocket feed lifecycle, driven with an in-memory socket."""

import asyncio
import logging
from types import SimpleNamespace

from delivery_hub.api.v1.endpoints.realtime import _serve_feed
from delivery_hub.core.errors import PermissionDeniedError
from delivery_hub.services.realtime import ChangeEvent, ChangeKind, SubscriptionManager


class MemorySocket:
    def __init__(self, manager: SubscriptionManager, fail_updates: bool = False) -> None:
        self.app = SimpleNamespace(state=SimpleNamespace(subscriptions=manager))
        self.fail_updates = fail_updates
        self.sent: list[dict] = []
        self.accepted = False
        self.close_code: int | None = None

    async def accept(self) -> None:
        self.accepted = True

    async def close(self, code: int) -> None:
        self.close_code = code

    async def send_json(self, payload: dict) -> None:
        if self.fail_updates and payload["event"] != "SNAPSHOT":
            raise RuntimeError("socket gone")
        self.sent.append(payload)

    async def receive_text(self) -> str:
        await asyncio.Event().wait()
        return ""


async def _run_until_subscribed(manager: SubscriptionManager, socket: MemorySocket, event: ChangeEvent) -> None:
    feed = asyncio.create_task(_serve_feed(socket, "orders", 4, lambda: {"id": 4}, {"id": 4}))
    while manager.listener_count("orders", {"id": 4}) == 0:
        await asyncio.sleep(0.01)
    manager.publish(event)
    await asyncio.wait_for(feed, timeout=5)


def test_failed_send_is_logged_and_subscription_released(caplog) -> None:
    manager = SubscriptionManager()
    socket = MemorySocket(manager, fail_updates=True)
    event = ChangeEvent("orders", ChangeKind.UPDATE, new={"id": 4, "status": "confirmed"})

    with caplog.at_level(logging.WARNING):
        asyncio.run(_run_until_subscribed(manager, socket, event))

    assert socket.sent[0]["event"] == "SNAPSHOT"
    assert manager.channel_count() == 0
    assert "orders feed failed order_id=4" in caplog.text


def test_rejected_snapshot_closes_with_policy_violation() -> None:
    manager = SubscriptionManager()
    socket = MemorySocket(manager)

    def denied() -> dict:
        raise PermissionDeniedError("Order is not assigned to you")

    asyncio.run(_serve_feed(socket, "orders", 4, denied, {"id": 4}))

    assert socket.close_code == 1008
    assert not socket.accepted
    assert manager.channel_count() == 0
