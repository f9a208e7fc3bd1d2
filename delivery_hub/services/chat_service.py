"""Order chat between the customer, the assigned driver and support.

Every new message and read receipt is published on the ``messages`` table,
so both chat screens update live through the same feed as order tracking.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from delivery_hub.core.errors import (
    DataStoreError,
    MissingFieldError,
    OrderNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from delivery_hub.models import Message, Order
from delivery_hub.services.data_store import jsonable
from delivery_hub.services.order_controller import ActorContext, ensure_order_access
from delivery_hub.services.order_status import Actor
from delivery_hub.services.realtime import ChangeEvent, ChangeKind, SubscriptionManager

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000
MESSAGE_COLUMNS: tuple[str, ...] = tuple(column.name for column in Message.__table__.columns)


def message_to_row(message: Message) -> dict[str, Any]:
    return {column: jsonable(getattr(message, column)) for column in MESSAGE_COLUMNS}


def ensure_chat_access(order: Order, ctx: ActorContext) -> None:
    if ctx.actor == Actor.RESTAURANT:
        raise PermissionDeniedError("Restaurants do not take part in order chat")
    ensure_order_access(order, ctx)


class OrderChat:
    def __init__(self, db: Session, subscriptions: SubscriptionManager) -> None:
        self.db = db
        self.subscriptions = subscriptions

    def _order(self, order_id: int, ctx: ActorContext) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        ensure_chat_access(order, ctx)
        return order

    def _unread_from_others(self, order_id: int, user_id: int) -> tuple:
        return (
            Message.order_id == order_id,
            Message.sender_id != user_id,
            Message.read_at.is_(None),
        )

    def list_messages(self, order_id: int, ctx: ActorContext) -> list[Message]:
        """Oldest first, as the chat screens render them."""
        self._order(order_id, ctx)
        stmt = select(Message).where(Message.order_id == order_id).order_by(Message.created_at, Message.id)
        return list(self.db.scalars(stmt).all())

    def send(self, order_id: int, ctx: ActorContext, content: str) -> Message:
        self._order(order_id, ctx)
        text = (content or "").strip()
        if not text:
            raise MissingFieldError("content")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message is longer than {MAX_MESSAGE_LENGTH} characters")

        message = Message(order_id=order_id, sender_id=ctx.user_id, sender_type=ctx.actor.value, content=text)
        try:
            self.db.add(message)
            self.db.commit()
            self.db.refresh(message)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("[CHAT] send failed order_id=%s", order_id)
            raise DataStoreError("Could not send message") from exc

        logger.info("[CHAT] order_id=%s message_id=%s from %s:%s", order_id, message.id, ctx.actor.value, ctx.user_id)
        self.subscriptions.publish(ChangeEvent("messages", ChangeKind.INSERT, new=message_to_row(message)))
        return message

    def mark_read(self, order_id: int, ctx: ActorContext, now: datetime | None = None) -> int:
        """Stamp ``read_at`` on every unread message the other participants sent."""
        self._order(order_id, ctx)
        now = now or datetime.now(timezone.utc)
        unread = list(self.db.scalars(select(Message).where(*self._unread_from_others(order_id, ctx.user_id))).all())
        if not unread:
            return 0
        try:
            for message in unread:
                message.read_at = now
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("[CHAT] mark read failed order_id=%s", order_id)
            raise DataStoreError("Could not mark messages as read") from exc

        for message in unread:
            self.subscriptions.publish(ChangeEvent("messages", ChangeKind.UPDATE, new=message_to_row(message)))
        return len(unread)

    def unread_count(self, order_id: int, ctx: ActorContext) -> int:
        self._order(order_id, ctx)
        stmt = select(func.count(Message.id)).where(*self._unread_from_others(order_id, ctx.user_id))
        return int(self.db.scalar(stmt) or 0)
