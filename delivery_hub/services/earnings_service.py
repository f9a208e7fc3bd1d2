"""Driver earnings summaries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from delivery_hub.models import Order, Rating
from delivery_hub.utils.time import as_utc, today_window_utc


@dataclass
class PeriodEarnings:
    deliveries: int = 0
    earnings: Decimal = Decimal("0.00")

    def add(self, fee: Decimal) -> None:
        self.deliveries += 1
        self.earnings += fee


@dataclass
class EarningsSummary:
    today: PeriodEarnings
    week: PeriodEarnings
    month: PeriodEarnings
    total: PeriodEarnings
    rating_average: float | None
    rating_count: int


def driver_earnings(db: Session, driver_id: int, now: datetime | None = None) -> EarningsSummary:
    """Sum the ``delivery_fee`` of every order the driver delivered, per period.

    The week and month windows are rolling 7 and 30 days, as in the driver app.
    """
    now = now or datetime.now(timezone.utc)
    today_start, _ = today_window_utc(now)
    week_start = now - timedelta(days=7)
    month_start = now - timedelta(days=30)

    rows = db.execute(
        select(Order.delivery_fee, Order.updated_at).where(Order.driver_id == driver_id, Order.status == "delivered")
    ).all()

    summary = EarningsSummary(
        today=PeriodEarnings(),
        week=PeriodEarnings(),
        month=PeriodEarnings(),
        total=PeriodEarnings(),
        rating_average=None,
        rating_count=0,
    )
    for fee, updated_at in rows:
        fee = Decimal(fee or 0)
        delivered_at = as_utc(updated_at)
        summary.total.add(fee)
        if delivered_at >= month_start:
            summary.month.add(fee)
        if delivered_at >= week_start:
            summary.week.add(fee)
        if delivered_at >= today_start:
            summary.today.add(fee)

    average, count = db.execute(
        select(func.avg(Rating.driver_rating), func.count(Rating.driver_rating)).where(
            Rating.driver_id == driver_id, Rating.driver_rating.is_not(None)
        )
    ).one()
    summary.rating_count = int(count or 0)
    summary.rating_average = round(float(average), 1) if average is not None else None
    return summary
