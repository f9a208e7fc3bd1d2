"""Explicit subscription manager for table change events.

One channel exists per ``(table, filter)`` pair. Writers publish a
:class:`ChangeEvent` after every successful write; each channel whose filter
matches the changed row forwards it to its listeners. A channel is dropped as
soon as its last listener unsubscribes. Events written by other processes
arrive through the relay (see ``change_relay``) and go straight to
:meth:`SubscriptionManager.deliver`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    kind: ChangeKind
    new: dict[str, Any] | None = None
    old: dict[str, Any] | None = None

    @property
    def row(self) -> dict[str, Any]:
        return self.new if self.new is not None else (self.old or {})

    def as_payload(self) -> dict[str, Any]:
        return {"table": self.table, "event": self.kind.value, "new": self.new, "old": self.old}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ChangeEvent:
        return cls(payload["table"], ChangeKind(payload["event"]), new=payload.get("new"), old=payload.get("old"))


ChangeListener = Callable[[ChangeEvent], None]
ChannelKey = tuple[str, frozenset[tuple[str, Any]]]


def channel_key(table: str, row_filter: Mapping[str, Any] | None) -> ChannelKey:
    return table, frozenset((row_filter or {}).items())


@dataclass
class Channel:
    key: ChannelKey
    listeners: dict[int, ChangeListener] = field(default_factory=dict)

    def matches(self, event: ChangeEvent) -> bool:
        table, conditions = self.key
        if table != event.table:
            return False
        row = event.row
        return all(row.get(column) == value for column, value in conditions)


class Subscription:
    """Handle returned by :meth:`SubscriptionManager.subscribe`."""

    def __init__(self, manager: SubscriptionManager, key: ChannelKey, token: int) -> None:
        self._manager = manager
        self.key = key
        self._token = token
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._manager._remove(self.key, self._token)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class ChangeRelay(Protocol):
    def send(self, event: ChangeEvent) -> None: ...


class SubscriptionManager:
    """Channels of one process; an optional relay carries events to the others."""

    def __init__(self, relay: ChangeRelay | None = None) -> None:
        self._channels: dict[ChannelKey, Channel] = {}
        self._lock = threading.Lock()
        self._next_token = 0
        self.relay = relay

    def subscribe(
        self,
        table: str,
        row_filter: Mapping[str, Any] | None,
        on_change: ChangeListener,
    ) -> Subscription:
        key = channel_key(table, row_filter)
        with self._lock:
            self._next_token += 1
            token = self._next_token
            channel = self._channels.get(key)
            if channel is None:
                channel = Channel(key=key)
                self._channels[key] = channel
                logger.debug("[REALTIME] channel opened table=%s filter=%s", table, dict(key[1]))
            channel.listeners[token] = on_change
        return Subscription(self, key, token)

    def _remove(self, key: ChannelKey, token: int) -> None:
        with self._lock:
            channel = self._channels.get(key)
            if channel is None:
                return
            channel.listeners.pop(token, None)
            if not channel.listeners:
                del self._channels[key]
                logger.debug("[REALTIME] channel closed table=%s filter=%s", key[0], dict(key[1]))

    def publish(self, event: ChangeEvent) -> int:
        """Relay ``event`` to other processes, then deliver it locally."""
        if self.relay is not None:
            self.relay.send(event)
        return self.deliver(event)

    def deliver(self, event: ChangeEvent) -> int:
        """Call the matching local listeners; return how many were called."""
        with self._lock:
            targets = [
                listener
                for channel in self._channels.values()
                if channel.matches(event)
                for listener in channel.listeners.values()
            ]
        for listener in targets:
            try:
                listener(event)
            except Exception:
                logger.exception("[REALTIME] listener failed for table=%s kind=%s", event.table, event.kind.value)
        return len(targets)

    def channel_count(self) -> int:
        with self._lock:
            return len(self._channels)

    def listener_count(self, table: str, row_filter: Mapping[str, Any] | None = None) -> int:
        with self._lock:
            channel = self._channels.get(channel_key(table, row_filter))
            return len(channel.listeners) if channel else 0
