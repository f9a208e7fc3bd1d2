"""Driver presence and available-order queries."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from delivery_hub.core.errors import ValidationError
from delivery_hub.models import DriverProfile, Order, User
from delivery_hub.services.order_status import CLAIMABLE_STATUSES

logger = logging.getLogger(__name__)

AVAILABLE_STATUSES: tuple[str, ...] = tuple(sorted(status.value for status in CLAIMABLE_STATUSES))
AVAILABLE_LIMIT = 20
ACTIVE_DELIVERY_STATUSES: tuple[str, ...] = ("confirmed", "preparing", "ready", "picked_up")


def ensure_driver_profile(db: Session, user: User) -> DriverProfile:
    profile = db.scalar(select(DriverProfile).where(DriverProfile.user_id == user.id).limit(1))
    if profile is None:
        profile = DriverProfile(user_id=user.id, is_online=False)
        db.add(profile)
        db.commit()
        db.refresh(profile)
    return profile


def set_online(db: Session, user: User, is_online: bool) -> DriverProfile:
    profile = ensure_driver_profile(db, user)
    profile.is_online = is_online
    profile.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(profile)
    logger.info("[DRIVER] driver_id=%s online=%s", user.id, is_online)
    return profile


def update_position(db: Session, user: User, latitude: float, longitude: float) -> DriverProfile:
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise ValidationError("Coordinates out of range")
    profile = ensure_driver_profile(db, user)
    profile.current_latitude = latitude
    profile.current_longitude = longitude
    profile.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(profile)
    return profile


def available_orders(db: Session, limit: int = AVAILABLE_LIMIT) -> list[Order]:
    """Unassigned orders a driver can still claim, newest first."""
    return list(
        db.scalars(
            select(Order)
            .options(joinedload(Order.restaurant))
            .where(Order.status.in_(AVAILABLE_STATUSES), Order.driver_id.is_(None))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        ).all()
    )


def driver_orders(db: Session, driver_id: int, *, active: bool = True) -> list[Order]:
    """Orders assigned to the driver: in-progress ones, or the delivery history."""
    statuses = ACTIVE_DELIVERY_STATUSES if active else ("delivered", "cancelled")
    return list(
        db.scalars(
            select(Order)
            .options(joinedload(Order.restaurant))
            .where(Order.driver_id == driver_id, Order.status.in_(statuses))
            .order_by(Order.updated_at.desc(), Order.id.desc())
        ).all()
    )


def online_drivers(db: Session) -> list[tuple[User, DriverProfile]]:
    rows = db.execute(
        select(User, DriverProfile)
        .join(DriverProfile, DriverProfile.user_id == User.id)
        .where(User.role == "DRIVER", User.is_active.is_(True), DriverProfile.is_online.is_(True))
        .order_by(User.full_name)
    ).all()
    return [(user, profile) for user, profile in rows]
