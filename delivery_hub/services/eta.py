"""Straight-line ETA heuristic shown on tracking screens."""

from __future__ import annotations

import math
from typing import NamedTuple

EARTH_RADIUS_KM = 6371.0
MINUTES_PER_KM = 4  # ~15 km/h average urban speed
BASE_BUFFER_MINUTES = 5
EN_ROUTE_BUFFER_MINUTES = 3
DEFAULT_ETA_MINUTES = 35
MIN_ETA_MINUTES = 5
MAX_ETA_MINUTES = 60
PREP_TIME_MINUTES: dict[str, int] = {"confirmed": 15, "preparing": 10}


class Coordinates(NamedTuple):
    latitude: float
    longitude: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometers."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def clamp_minutes(minutes: int) -> int:
    return max(MIN_ETA_MINUTES, min(MAX_ETA_MINUTES, minutes))


def estimate_minutes(
    restaurant: Coordinates | None,
    delivery: Coordinates | None,
    status: str,
) -> int | None:
    """Estimate minutes until delivery for an order in ``status``.

    Returns None for delivered and cancelled orders, which show no ETA.
    Missing coordinates fall back to a fixed default.
    """
    if status in {"delivered", "cancelled"}:
        return None
    if restaurant is None or delivery is None:
        return DEFAULT_ETA_MINUTES

    distance = haversine_km(restaurant.latitude, restaurant.longitude, delivery.latitude, delivery.longitude)
    travel = math.ceil(distance * MINUTES_PER_KM)
    if status == "picked_up":
        return clamp_minutes(travel + EN_ROUTE_BUFFER_MINUTES)

    prep_time = PREP_TIME_MINUTES.get(status, 0)
    return clamp_minutes(prep_time + travel + BASE_BUFFER_MINUTES)


def order_coordinates(order) -> tuple[Coordinates | None, Coordinates | None]:
    """Extract restaurant and delivery coordinates from an ORM order."""
    restaurant = None
    if order.restaurant is not None and order.restaurant.latitude is not None and order.restaurant.longitude is not None:
        restaurant = Coordinates(order.restaurant.latitude, order.restaurant.longitude)
    delivery = None
    if order.delivery_latitude is not None and order.delivery_longitude is not None:
        delivery = Coordinates(order.delivery_latitude, order.delivery_longitude)
    return restaurant, delivery
