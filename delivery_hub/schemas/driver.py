"""Driver app schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class OnlineRequest(BaseModel):
    is_online: bool


class PositionRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class DriverProfileRead(BaseModel):
    user_id: int
    is_online: bool
    vehicle_type: str | None
    current_latitude: float | None
    current_longitude: float | None

    model_config = ConfigDict(from_attributes=True)


class PeriodEarningsRead(BaseModel):
    deliveries: int
    earnings: Decimal

    model_config = ConfigDict(from_attributes=True)


class EarningsResponse(BaseModel):
    today: PeriodEarningsRead
    week: PeriodEarningsRead
    month: PeriodEarningsRead
    total: PeriodEarningsRead
    rating_average: float | None
    rating_count: int

    model_config = ConfigDict(from_attributes=True)
