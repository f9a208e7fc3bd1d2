"""Application models package."""

from delivery_hub.models.audit_log import AuditLog
from delivery_hub.models.coupon import Coupon
from delivery_hub.models.message import Message
from delivery_hub.models.order import Order, OrderItem
from delivery_hub.models.rating import Rating
from delivery_hub.models.restaurant import Product, Restaurant
from delivery_hub.models.user import DriverProfile, User

__all__ = [
    "AuditLog", "Coupon", "DriverProfile", "Message", "Order", "OrderItem", "Product", "Rating", "Restaurant", "User",
]
