"""Push notification dispatch for order lifecycle events."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests
from sqlalchemy import select
from sqlalchemy.orm import Session

from delivery_hub.core.config import settings
from delivery_hub.core.errors import NotificationError
from delivery_hub.models import DriverProfile, Order, User
from delivery_hub.services.eta import haversine_km

logger = logging.getLogger(__name__)

EXPO_BATCH_SIZE = 100

STATUS_MESSAGES: dict[str, tuple[str, str]] = {
    "confirmed": ("Pedido confirmado", "Tu pedido en {restaurant} ha sido confirmado"),
    "preparing": ("Preparando tu pedido", "{restaurant} está preparando tu pedido"),
    "ready": ("Pedido listo", "Tu pedido está listo y pronto saldrá a tu ubicación"),
    "picked_up": ("Pedido recogido", "El repartidor recogió tu pedido y va en camino"),
    "delivered": ("¡Pedido entregado!", "¡Disfruta tu pedido! No olvides calificarnos"),
    "cancelled": ("Pedido cancelado", "El pedido #{order_id} ha sido cancelado"),
}


def status_message(status: str, restaurant_name: str | None, order_id: int) -> tuple[str, str]:
    title, body = STATUS_MESSAGES.get(status, ("Actualización de pedido", "Estado: {status}"))
    return title, body.format(restaurant=restaurant_name or "la tienda", order_id=order_id, status=status)


class PushDispatcher(Protocol):
    def send_notification(self, token: str, title: str, body: str, data: dict[str, Any]) -> None: ...

    def send_many(self, tokens: list[str], title: str, body: str, data: dict[str, Any]) -> int: ...


class LoggingPushDispatcher:
    """Used when push delivery is disabled; records what would have been sent."""

    def send_notification(self, token: str, title: str, body: str, data: dict[str, Any]) -> None:
        logger.info("[PUSH] disabled, would send to=%s title=%r data=%s", token, title, data)

    def send_many(self, tokens: list[str], title: str, body: str, data: dict[str, Any]) -> int:
        for token in tokens:
            self.send_notification(token, title, body, data)
        return len(tokens)


class ExpoPushDispatcher:
    """Send messages through the Expo push service."""

    def __init__(
        self,
        push_url: str = settings.expo_push_url,
        timeout: float = settings.push_timeout_seconds,
        session: requests.Session | None = None,
    ) -> None:
        self.push_url = push_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _message(self, token: str, title: str, body: str, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data,
            "priority": "high",
            "channelId": "orders",
        }

    def send_notification(self, token: str, title: str, body: str, data: dict[str, Any]) -> None:
        self.send_batch([self._message(token, title, body, data)])

    def send_many(self, tokens: list[str], title: str, body: str, data: dict[str, Any]) -> int:
        messages = [self._message(token, title, body, data) for token in tokens]
        sent = 0
        for start in range(0, len(messages), EXPO_BATCH_SIZE):
            chunk = messages[start:start + EXPO_BATCH_SIZE]
            self.send_batch(chunk)
            sent += len(chunk)
        return sent

    def send_batch(self, messages: list[dict[str, Any]]) -> None:
        try:
            response = self.session.post(
                self.push_url,
                json=messages,
                headers={"Accept": "application/json", "Accept-encoding": "gzip, deflate"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("[PUSH] send failed for %s message(s): %s", len(messages), exc)
            raise NotificationError("Push notification could not be delivered") from exc


def build_dispatcher() -> PushDispatcher:
    if settings.push_enabled:
        return ExpoPushDispatcher()
    return LoggingPushDispatcher()


class OrderNotifier:
    """Resolve recipients for an order event and hand messages to a dispatcher.

    Recipients without a push token are skipped silently; a dispatcher failure
    raises :class:`NotificationError` for the caller to report as a warning.
    """

    def __init__(self, db: Session, dispatcher: PushDispatcher) -> None:
        self.db = db
        self.dispatcher = dispatcher

    def _send(self, token: str | None, title: str, body: str, data: dict[str, Any]) -> bool:
        if not token:
            return False
        self.dispatcher.send_notification(token, title, body, data)
        return True

    def notify_customer(self, order: Order) -> bool:
        customer = self.db.get(User, order.user_id)
        restaurant_name = order.restaurant.name if order.restaurant else None
        title, body = status_message(order.status, restaurant_name, order.id)
        data = {"type": "order_status", "orderId": order.id, "status": order.status}
        return self._send(customer.push_token if customer else None, title, body, data)

    def notify_affected_parties(self, order: Order) -> int:
        """Tell the customer and, if assigned, the driver that the order was cancelled."""
        title, body = status_message(order.status, order.restaurant.name if order.restaurant else None, order.id)
        data = {"type": "order_cancelled", "orderId": order.id, "reason": order.cancellation_reason}
        notified = 0
        for user_id in (order.user_id, order.driver_id):
            if user_id is None:
                continue
            user = self.db.get(User, user_id)
            if user is not None and self._send(user.push_token, title, body, data):
                notified += 1
        return notified

    def eligible_driver_tokens(self, order: Order) -> list[str]:
        rows = self.db.execute(
            select(User.push_token, DriverProfile.current_latitude, DriverProfile.current_longitude)
            .join(DriverProfile, DriverProfile.user_id == User.id)
            .where(
                User.role == "DRIVER",
                User.is_active.is_(True),
                DriverProfile.is_online.is_(True),
                User.push_token.is_not(None),
            )
        ).all()

        restaurant = order.restaurant
        tokens: list[str] = []
        for token, latitude, longitude in rows:
            if restaurant is None or restaurant.latitude is None or restaurant.longitude is None:
                tokens.append(token)
                continue
            if latitude is None or longitude is None:
                tokens.append(token)
                continue
            distance = haversine_km(restaurant.latitude, restaurant.longitude, latitude, longitude)
            if distance <= settings.driver_notify_radius_km:
                tokens.append(token)
        return tokens

    def notify_eligible_drivers(self, order: Order) -> int:
        tokens = self.eligible_driver_tokens(order)
        if not tokens:
            logger.info("[PUSH] no online drivers nearby for order_id=%s", order.id)
            return 0
        restaurant_name = order.restaurant.name if order.restaurant else "Restaurante"
        title = "¡Nuevo pedido disponible!"
        body = f"Pedido de {restaurant_name} - S/{order.delivery_fee:.2f} de delivery"
        data = {"type": "new_order", "orderId": order.id}
        return self.dispatcher.send_many(tokens, title, body, data)

    def prompt_rating(self, order: Order) -> bool:
        customer = self.db.get(User, order.user_id)
        data = {"type": "rating_prompt", "orderId": order.id}
        return self._send(
            customer.push_token if customer else None,
            "¿Qué tal tu pedido?",
            "Califica tu experiencia con el restaurante y el repartidor",
            data,
        )
