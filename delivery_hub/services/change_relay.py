"""Redis pub/sub relay so every API worker and Streamlit process sees each change.

Each process keeps its own :class:`SubscriptionManager`. Published events are
also written to one Redis channel; a listener thread feeds events that other
processes wrote into the local manager. Events carry an origin id so a process
never delivers its own event twice.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

import redis

from delivery_hub.core.config import settings
from delivery_hub.services.realtime import ChangeEvent, SubscriptionManager

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "delivery_hub:changes"


class RedisChangeRelay:
    def __init__(self, client: redis.Redis, manager: SubscriptionManager, channel: str = DEFAULT_CHANNEL) -> None:
        self.client = client
        self.manager = manager
        self.channel = channel
        self.origin = uuid.uuid4().hex
        self._pubsub: Any = None
        self._thread: Any = None

    def send(self, event: ChangeEvent) -> None:
        message = json.dumps({"origin": self.origin, **event.as_payload()})
        try:
            self.client.publish(self.channel, message)
        except redis.RedisError as exc:
            # Local listeners still get the event; other processes miss it.
            logger.warning("[RELAY] publish failed table=%s: %s", event.table, exc)

    def handle_message(self, message: dict[str, Any]) -> int:
        """Deliver an event written by another process; return how many listeners ran."""
        if message.get("type") != "message":
            return 0
        data = message.get("data")
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            payload = json.loads(data)
            if payload.get("origin") == self.origin:
                return 0
            event = ChangeEvent.from_payload(payload)
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning("[RELAY] dropped malformed message: %s", exc)
            return 0
        return self.manager.deliver(event)

    def start(self, sleep_time: float = 0.05) -> None:
        self._pubsub = self.client.pubsub(ignore_subscribe_messages=True)
        self._pubsub.subscribe(**{self.channel: self.handle_message})
        self._thread = self._pubsub.run_in_thread(sleep_time=sleep_time, daemon=True)
        logger.info("[RELAY] listening on channel=%s origin=%s", self.channel, self.origin)

    def stop(self) -> None:
        if self._thread is not None:
            self._thread.stop()
            self._thread = None
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None


def build_subscriptions(redis_url: str | None = None) -> SubscriptionManager:
    """Subscription manager for this process, relayed through Redis when a URL is set."""
    url = settings.redis_url if redis_url is None else redis_url
    manager = SubscriptionManager()
    if not url:
        return manager
    relay = RedisChangeRelay(redis.Redis.from_url(url), manager)
    try:
        relay.start()
    except redis.RedisError as exc:
        logger.warning("[RELAY] Redis unavailable at startup, changes stay in this process: %s", exc)
        return manager
    manager.relay = relay
    return manager
