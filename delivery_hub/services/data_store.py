"""Order data store: reads, conditional writes and change publication."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from delivery_hub.core.errors import DataStoreError, InvalidTransitionError
from delivery_hub.models import Order
from delivery_hub.services.order_status import can_transition
from delivery_hub.services.realtime import ChangeEvent, ChangeKind, ChangeListener, Subscription, SubscriptionManager

logger = logging.getLogger(__name__)

ORDER_COLUMNS: tuple[str, ...] = tuple(column.name for column in Order.__table__.columns)


def jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def order_to_row(order: Order) -> dict[str, Any]:
    """Plain-dict snapshot of an order row, safe to send over the change feed."""
    return {column: jsonable(getattr(order, column)) for column in ORDER_COLUMNS}


class DataStore:
    """Thin wrapper over a SQLAlchemy session shaped like the hosted backend API.

    ``update_order`` returns the affected row count instead of raising when a
    precondition no longer holds, so callers can detect lost races.
    """

    def __init__(self, db: Session, subscriptions: SubscriptionManager) -> None:
        self.db = db
        self.subscriptions = subscriptions

    def read_order(self, order_id: int) -> Order | None:
        try:
            return self.db.get(Order, order_id, populate_existing=True)
        except SQLAlchemyError as exc:
            raise DataStoreError(f"Could not read order {order_id}") from exc

    def update_order(
        self,
        order_id: int,
        patch: Mapping[str, Any],
        precondition: Mapping[str, Any] | None = None,
    ) -> int:
        """Apply ``patch`` when every precondition equality still holds.

        A ``None`` precondition value means ``IS NULL``.
        """
        if not patch:
            raise ValueError("patch must not be empty")
        unknown = set(patch) | set(precondition or {})
        unknown -= set(ORDER_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown order columns: {sorted(unknown)}")
        new_status = patch.get("status")
        expected_status = (precondition or {}).get("status")
        if new_status is not None and expected_status is not None and new_status != expected_status:
            if not can_transition(expected_status, new_status):
                raise InvalidTransitionError(expected_status, f"move to {new_status}", "any actor")

        stmt = update(Order).where(Order.id == order_id)
        for column, expected in (precondition or {}).items():
            attribute = getattr(Order, column)
            stmt = stmt.where(attribute.is_(None) if expected is None else attribute == expected)
        stmt = stmt.values(**patch).execution_options(synchronize_session=False)

        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("[STORE] update failed order_id=%s", order_id)
            raise DataStoreError(f"Could not update order {order_id}") from exc

        affected = result.rowcount or 0
        logger.info("[STORE] update order_id=%s columns=%s affected=%s", order_id, sorted(patch), affected)
        if affected:
            updated = self.read_order(order_id)
            if updated is not None:
                self.subscriptions.publish(ChangeEvent("orders", ChangeKind.UPDATE, new=order_to_row(updated)))
        return affected

    def insert_order(self, order: Order) -> Order:
        """Insert a new order with its items. Not idempotent; never retried automatically."""
        try:
            self.db.add(order)
            self.db.commit()
            self.db.refresh(order)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("[STORE] insert failed user_id=%s", order.user_id)
            raise DataStoreError("Could not create order") from exc
        self.subscriptions.publish(ChangeEvent("orders", ChangeKind.INSERT, new=order_to_row(order)))
        return order

    def subscribe_to_table(
        self,
        table: str,
        row_filter: Mapping[str, Any] | None,
        on_change: ChangeListener,
    ) -> Subscription:
        return self.subscriptions.subscribe(table, row_filter, on_change)
