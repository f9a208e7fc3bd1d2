"""Order API schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CheckoutItemPayload(BaseModel):
    """Single cart line."""

    product_id: int
    quantity: int = Field(default=1, ge=1)
    notes: str | None = None


class CheckoutRequest(BaseModel):
    """Create a pending order from the customer's cart."""

    restaurant_id: int
    items: list[CheckoutItemPayload]
    delivery_address: str
    delivery_latitude: float | None = None
    delivery_longitude: float | None = None
    payment_method: str = "cash"
    notes: str | None = None
    tip: Decimal = Field(default=Decimal("0.00"), ge=0)
    coupon_code: str | None = None


class OrderItemRead(BaseModel):
    product_id: int | None
    name: str
    unit_price: Decimal
    quantity: int
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    """Serialized order."""

    id: int
    user_id: int
    restaurant_id: int
    driver_id: int | None
    status: str
    subtotal: Decimal
    delivery_fee: Decimal
    discount: Decimal
    tip: Decimal
    total: Decimal
    delivery_address: str
    delivery_latitude: float | None
    delivery_longitude: float | None
    payment_method: str
    notes: str | None
    coupon_code: str | None
    proof_of_delivery: str | None
    cancellation_reason: str | None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None
    items: list[OrderItemRead] = []

    model_config = ConfigDict(from_attributes=True)


class OrderEventRequest(BaseModel):
    """Status event fired by restaurant/admin UIs."""

    event: str
    reason: str | None = None


class CancelRequest(BaseModel):
    reason: str


class TransitionResponse(BaseModel):
    order: OrderRead
    from_status: str
    to_status: str
    side_effects: list[str]
    warnings: list[str]
    eta_minutes: int | None = None


class CheckoutResponse(BaseModel):
    order: OrderRead
    warnings: list[str]


class ClaimResponse(BaseModel):
    claimed: bool
    reason: str | None = None
    order: OrderRead | None = None
    warnings: list[str] = []


class ReassignRequest(BaseModel):
    driver_id: int | None = None


class EtaResponse(BaseModel):
    order_id: int
    status: str
    eta_minutes: int | None
    allowed_events: list[str]
    step: int


class AuditEntryRead(BaseModel):
    id: int
    timestamp: datetime
    actor_user_id: int | None
    actor_role: str
    action_type: str
    before_snapshot: dict | None
    after_snapshot: dict | None

    model_config = ConfigDict(from_attributes=True)
