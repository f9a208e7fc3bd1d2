"""Restaurant, product, coupon and rating schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class RestaurantCreate(BaseModel):
    name: str
    address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    owner_id: int | None = None
    is_active: bool = True


class RestaurantRead(RestaurantCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    name: str
    description: str | None = None
    price: Decimal = Field(ge=0)
    is_available: bool = True


class ProductRead(ProductCreate):
    id: int
    restaurant_id: int

    model_config = ConfigDict(from_attributes=True)


class CouponCreate(BaseModel):
    code: str
    description: str = ""
    discount_type: str = "percentage"
    discount_value: Decimal = Field(gt=0)
    min_order_amount: Decimal | None = None
    max_discount: Decimal | None = None
    max_uses: int | None = None
    is_active: bool = True
    valid_until: datetime | None = None


class CouponRead(CouponCreate):
    id: int
    current_uses: int

    model_config = ConfigDict(from_attributes=True)


class RatingCreate(BaseModel):
    restaurant_rating: int = Field(ge=1, le=5)
    driver_rating: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = None


class RatingRead(RatingCreate):
    id: int
    order_id: int

    model_config = ConfigDict(from_attributes=True)
