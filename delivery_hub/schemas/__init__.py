"""Schema exports."""

from delivery_hub.schemas.auth import AuthUserResponse, LoginRequest, PushTokenRequest, RegisterRequest, TokenResponse
from delivery_hub.schemas.catalog import (
    CouponCreate,
    CouponRead,
    ProductCreate,
    ProductRead,
    RatingCreate,
    RatingRead,
    RestaurantCreate,
    RestaurantRead,
)
from delivery_hub.schemas.chat import MarkReadResponse, MessageCreate, MessageRead
from delivery_hub.schemas.driver import DriverProfileRead, EarningsResponse, OnlineRequest, PositionRequest
from delivery_hub.schemas.order import (
    CancelRequest,
    CheckoutItemPayload,
    CheckoutRequest,
    CheckoutResponse,
    ClaimResponse,
    EtaResponse,
    OrderEventRequest,
    OrderItemRead,
    OrderRead,
    ReassignRequest,
    TransitionResponse,
)
from delivery_hub.schemas.stats import DashboardStatsResponse

__all__ = [
    "AuthUserResponse",
    "LoginRequest",
    "PushTokenRequest",
    "RegisterRequest",
    "TokenResponse",
    "CouponCreate",
    "CouponRead",
    "ProductCreate",
    "ProductRead",
    "RatingCreate",
    "RatingRead",
    "RestaurantCreate",
    "RestaurantRead",
    "MarkReadResponse",
    "MessageCreate",
    "MessageRead",
    "DriverProfileRead",
    "EarningsResponse",
    "OnlineRequest",
    "PositionRequest",
    "CancelRequest",
    "CheckoutItemPayload",
    "CheckoutRequest",
    "CheckoutResponse",
    "ClaimResponse",
    "EtaResponse",
    "OrderEventRequest",
    "OrderItemRead",
    "OrderRead",
    "ReassignRequest",
    "TransitionResponse",
    "DashboardStatsResponse",
]
