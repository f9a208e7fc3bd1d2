"""Dashboard and analytics figures for admins and restaurant owners.

Revenue counts every order that was not cancelled, matching what the admin
dashboard has always shown. Restaurant owners only see their own restaurants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from delivery_hub.models import Order, OrderItem, Restaurant, User
from delivery_hub.utils.time import as_utc, today_window_utc

TOP_LIMIT = 5
DAILY_WINDOW_DAYS = 7


@dataclass
class DailyFigure:
    day: date
    orders: int = 0
    revenue: Decimal = Decimal("0.00")


@dataclass
class ProductFigure:
    name: str
    quantity: int
    revenue: Decimal


@dataclass
class RestaurantFigure:
    restaurant_id: int
    name: str
    orders: int
    revenue: Decimal


@dataclass
class DashboardStats:
    orders_today: int = 0
    revenue_today: Decimal = Decimal("0.00")
    revenue_total: Decimal = Decimal("0.00")
    orders_by_status: dict[str, int] = field(default_factory=dict)
    daily: list[DailyFigure] = field(default_factory=list)
    top_products: list[ProductFigure] = field(default_factory=list)
    top_restaurants: list[RestaurantFigure] = field(default_factory=list)
    active_restaurants: int = 0
    total_users: int | None = None


def _owned(stmt, owner_id: int | None):
    if owner_id is None:
        return stmt
    return stmt.where(Order.restaurant_id.in_(select(Restaurant.id).where(Restaurant.owner_id == owner_id)))


def dashboard_stats(db: Session, owner_id: int | None = None, now: datetime | None = None) -> DashboardStats:
    now = now or datetime.now(timezone.utc)
    today_start, today_end = today_window_utc(now)
    first_day = (today_start - timedelta(days=DAILY_WINDOW_DAYS - 1)).date()
    stats = DashboardStats()
    stats.daily = [DailyFigure(day=first_day + timedelta(days=offset)) for offset in range(DAILY_WINDOW_DAYS)]
    daily_by_day = {figure.day: figure for figure in stats.daily}

    rows = db.execute(_owned(select(Order.status, Order.total, Order.created_at), owner_id)).all()
    for status, total, created_at in rows:
        stats.orders_by_status[status] = stats.orders_by_status.get(status, 0) + 1
        created_at = as_utc(created_at)
        is_today = today_start <= created_at < today_end
        if is_today:
            stats.orders_today += 1
        if status == "cancelled":
            continue
        total = Decimal(total or 0)
        stats.revenue_total += total
        if is_today:
            stats.revenue_today += total
        figure = daily_by_day.get(created_at.date())
        if figure is not None:
            figure.orders += 1
            figure.revenue += total

    quantity = func.sum(OrderItem.quantity)
    product_rows = db.execute(
        _owned(
            select(OrderItem.name, quantity, func.sum(OrderItem.total_price))
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.status != "cancelled"),
            owner_id,
        )
        .group_by(OrderItem.name)
        .order_by(quantity.desc(), OrderItem.name)
        .limit(TOP_LIMIT)
    ).all()
    stats.top_products = [
        ProductFigure(name=name, quantity=int(qty or 0), revenue=Decimal(revenue or 0)) for name, qty, revenue in product_rows
    ]

    order_count = func.count(Order.id)
    restaurant_rows = db.execute(
        _owned(
            select(Restaurant.id, Restaurant.name, order_count, func.sum(Order.total))
            .join(Order, Order.restaurant_id == Restaurant.id)
            .where(Order.status != "cancelled"),
            owner_id,
        )
        .group_by(Restaurant.id, Restaurant.name)
        .order_by(order_count.desc(), Restaurant.name)
        .limit(TOP_LIMIT)
    ).all()
    stats.top_restaurants = [
        RestaurantFigure(restaurant_id=rid, name=name, orders=int(count), revenue=Decimal(revenue or 0))
        for rid, name, count, revenue in restaurant_rows
    ]

    active = select(func.count(Restaurant.id)).where(Restaurant.is_active.is_(True))
    if owner_id is not None:
        active = active.where(Restaurant.owner_id == owner_id)
    stats.active_restaurants = int(db.scalar(active) or 0)
    if owner_id is None:
        stats.total_users = int(db.scalar(select(func.count(User.id))) or 0)
    return stats
