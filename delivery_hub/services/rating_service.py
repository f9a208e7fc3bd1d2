"""Post-delivery ratings."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from delivery_hub.core.errors import OrderNotFoundError, ValidationError
from delivery_hub.models import Order, Rating

logger = logging.getLogger(__name__)


def _check_score(value: int | None, field_name: str) -> None:
    if value is not None and not 1 <= value <= 5:
        raise ValidationError(f"{field_name} must be between 1 and 5")


def submit_rating(
    db: Session,
    *,
    order_id: int,
    customer_id: int,
    restaurant_rating: int,
    driver_rating: int | None = None,
    comment: str | None = None,
) -> Rating:
    """Store the customer's single rating for a delivered order."""
    _check_score(restaurant_rating, "restaurant_rating")
    _check_score(driver_rating, "driver_rating")

    order = db.get(Order, order_id)
    if order is None or order.user_id != customer_id:
        raise OrderNotFoundError(order_id)
    if order.status != "delivered":
        raise ValidationError("Only delivered orders can be rated")
    if driver_rating is not None and order.driver_id is None:
        raise ValidationError("Order has no driver to rate")
    if db.scalar(select(Rating.id).where(Rating.order_id == order_id).limit(1)) is not None:
        raise ValidationError("Order was already rated")

    rating = Rating(
        order_id=order.id,
        user_id=customer_id,
        restaurant_id=order.restaurant_id,
        driver_id=order.driver_id,
        restaurant_rating=restaurant_rating,
        driver_rating=driver_rating,
        comment=(comment or "").strip() or None,
    )
    db.add(rating)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("Order was already rated") from exc
    db.refresh(rating)
    logger.info("[RATING] order_id=%s restaurant=%s driver=%s", order_id, restaurant_rating, driver_rating)
    return rating


def has_rated(db: Session, order_id: int) -> bool:
    return db.scalar(select(Rating.id).where(Rating.order_id == order_id).limit(1)) is not None
