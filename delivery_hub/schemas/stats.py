"""Admin dashboard schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class DailyFigureRead(BaseModel):
    day: date
    orders: int
    revenue: Decimal

    model_config = ConfigDict(from_attributes=True)


class ProductFigureRead(BaseModel):
    name: str
    quantity: int
    revenue: Decimal

    model_config = ConfigDict(from_attributes=True)


class RestaurantFigureRead(BaseModel):
    restaurant_id: int
    name: str
    orders: int
    revenue: Decimal

    model_config = ConfigDict(from_attributes=True)


class DashboardStatsResponse(BaseModel):
    orders_today: int
    revenue_today: Decimal
    revenue_total: Decimal
    orders_by_status: dict[str, int]
    daily: list[DailyFigureRead]
    top_products: list[ProductFigureRead]
    top_restaurants: list[RestaurantFigureRead]
    active_restaurants: int
    total_users: int | None

    model_config = ConfigDict(from_attributes=True)
