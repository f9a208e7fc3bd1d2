"""Dashboard figures for admins and restaurant owners."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from delivery_hub.services.stats_service import dashboard_stats
from tests.factories import make_order, make_restaurant, make_user

NOW = datetime(2026, 5, 20, 15, 0, tzinfo=timezone.utc)


def _seed(db):
    owner = make_user(db, "owner@example.com", "RESTAURANT")
    customer = make_user(db, "ana@example.com", "CUSTOMER")
    mine = make_restaurant(db, owner)
    theirs = make_restaurant(db)
    today = NOW - timedelta(hours=1)
    make_order(db, customer, mine, created_at=today)
    make_order(db, customer, mine, status="delivered", created_at=today)
    make_order(db, customer, mine, status="cancelled", created_at=today)
    make_order(db, customer, theirs, status="delivered", created_at=NOW - timedelta(days=3))
    return owner.id, mine.id, theirs.id


def test_admin_sees_every_restaurant(db) -> None:
    _, mine_id, theirs_id = _seed(db)

    stats = dashboard_stats(db, now=NOW)

    assert stats.orders_today == 3
    assert stats.revenue_today == Decimal("50.00")
    assert stats.revenue_total == Decimal("75.00")
    assert stats.orders_by_status == {"pending": 1, "delivered": 2, "cancelled": 1}
    assert [figure.day for figure in stats.daily] == [date(2026, 5, 14) + timedelta(days=n) for n in range(7)]
    assert (stats.daily[-1].orders, stats.daily[-1].revenue) == (2, Decimal("50.00"))
    assert (stats.daily[3].orders, stats.daily[3].revenue) == (1, Decimal("25.00"))
    assert [(p.name, p.quantity, p.revenue) for p in stats.top_products] == [("Pollo a la brasa", 3, Decimal("60.00"))]
    assert [(r.restaurant_id, r.orders) for r in stats.top_restaurants] == [(mine_id, 2), (theirs_id, 1)]
    assert stats.active_restaurants == 2
    assert stats.total_users == 2


def test_owner_only_sees_their_restaurant(db) -> None:
    owner_id, mine_id, _ = _seed(db)

    stats = dashboard_stats(db, owner_id=owner_id, now=NOW)

    assert stats.orders_today == 3
    assert stats.revenue_total == Decimal("50.00")
    assert [(r.restaurant_id, r.orders) for r in stats.top_restaurants] == [(mine_id, 2)]
    assert stats.top_products[0].quantity == 2
    assert stats.active_restaurants == 1
    assert stats.total_users is None


def test_empty_dashboard(db) -> None:
    stats = dashboard_stats(db, now=NOW)
    assert stats.orders_today == 0
    assert stats.revenue_total == Decimal("0.00")
    assert stats.top_products == []
    assert len(stats.daily) == 7
