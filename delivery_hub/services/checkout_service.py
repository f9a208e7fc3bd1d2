"""Customer checkout: price a cart server-side and create a pending order."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from delivery_hub.core.config import settings
from delivery_hub.core.errors import MissingFieldError, NotificationError, ValidationError
from delivery_hub.models import Coupon, Order, OrderItem, Product, Restaurant, User
from delivery_hub.services.data_store import DataStore
from delivery_hub.services.notifications import OrderNotifier

logger = logging.getLogger(__name__)

PAYMENT_METHODS: tuple[str, ...] = ("cash", "yape", "plin", "lemon", "billetera_bcp", "tunki", "card", "pos")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class CheckoutLine:
    product_id: int
    quantity: int
    notes: str | None = None


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_coupon(db: Session, code: str, subtotal: Decimal, now: datetime | None = None) -> Coupon:
    """Return the active coupon for ``code`` or raise a ValidationError explaining why not."""
    now = now or datetime.now(timezone.utc)
    normalized = code.strip().upper()
    coupon = db.scalar(select(Coupon).where(func.upper(Coupon.code) == normalized, Coupon.is_active.is_(True)).limit(1))
    if coupon is None:
        raise ValidationError("Coupon code does not exist or is no longer active")
    if coupon.valid_until is not None:
        valid_until = coupon.valid_until
        if valid_until.tzinfo is None:
            valid_until = valid_until.replace(tzinfo=timezone.utc)
        if valid_until < now:
            raise ValidationError("Coupon code has expired")
    if coupon.min_order_amount is not None and subtotal < coupon.min_order_amount:
        raise ValidationError(f"Coupon requires a minimum order of S/ {coupon.min_order_amount:.2f}")
    if coupon.max_uses is not None and coupon.current_uses >= coupon.max_uses:
        raise ValidationError("Coupon usage limit reached")
    return coupon


def compute_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    if coupon.discount_type == "percentage":
        discount = subtotal * Decimal(coupon.discount_value) / Decimal(100)
        if coupon.max_discount is not None and discount > coupon.max_discount:
            discount = Decimal(coupon.max_discount)
    else:
        discount = Decimal(coupon.discount_value)
    return _money(min(discount, subtotal))


def place_order(
    store: DataStore,
    notifier: OrderNotifier,
    *,
    customer: User,
    restaurant_id: int,
    lines: list[CheckoutLine],
    delivery_address: str,
    delivery_latitude: float | None = None,
    delivery_longitude: float | None = None,
    payment_method: str = "cash",
    notes: str | None = None,
    tip: Decimal = Decimal("0.00"),
    coupon_code: str | None = None,
) -> tuple[Order, list[str]]:
    """Create a ``pending`` order with no driver. Returns the order and best-effort warnings."""
    db = store.db
    if not lines:
        raise ValidationError("Cart is empty")
    if not delivery_address or not delivery_address.strip():
        raise MissingFieldError("delivery_address")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Unsupported payment method: {payment_method}")
    if tip < 0:
        raise ValidationError("Tip must be >= 0")

    restaurant = db.get(Restaurant, restaurant_id)
    if restaurant is None or not restaurant.is_active:
        raise ValidationError("Restaurant is not available")

    product_ids = [line.product_id for line in lines]
    products = {product.id: product for product in db.scalars(select(Product).where(Product.id.in_(product_ids))).all()}

    items: list[OrderItem] = []
    subtotal = Decimal("0.00")
    for line in lines:
        if line.quantity < 1:
            raise ValidationError("Quantity must be >= 1")
        product = products.get(line.product_id)
        if product is None or product.restaurant_id != restaurant.id:
            raise ValidationError(f"Product {line.product_id} is not sold by this restaurant")
        if not product.is_available:
            raise ValidationError(f"Product {product.name} is currently unavailable")
        line_total = _money(product.price * line.quantity)
        subtotal += line_total
        items.append(
            OrderItem(
                product_id=product.id,
                name=product.name,
                unit_price=product.price,
                quantity=line.quantity,
                total_price=line_total,
                notes=line.notes,
            )
        )

    discount = Decimal("0.00")
    coupon: Coupon | None = None
    if coupon_code and coupon_code.strip():
        coupon = resolve_coupon(db, coupon_code, subtotal)
        discount = compute_discount(coupon, subtotal)
        coupon.current_uses += 1

    delivery_fee = _money(settings.default_delivery_fee)
    tip = _money(tip)
    now = datetime.now(timezone.utc)
    order = Order(
        user_id=customer.id,
        restaurant_id=restaurant.id,
        driver_id=None,
        status="pending",
        subtotal=_money(subtotal),
        delivery_fee=delivery_fee,
        discount=discount,
        tip=tip,
        total=_money(subtotal + delivery_fee - discount + tip),
        delivery_address=delivery_address.strip(),
        delivery_latitude=delivery_latitude,
        delivery_longitude=delivery_longitude,
        payment_method=payment_method,
        notes=notes,
        coupon_code=coupon.code if coupon else None,
        created_at=now,
        updated_at=now,
        items=items,
    )
    store.insert_order(order)
    logger.info("[CHECKOUT] order_id=%s user_id=%s total=%s", order.id, customer.id, order.total)

    warnings: list[str] = []
    try:
        notifier.notify_eligible_drivers(order)
    except NotificationError as exc:
        logger.warning("[CHECKOUT] driver notification failed order_id=%s: %s", order.id, exc.message)
        warnings.append("Nearby drivers could not be notified")
    return order, warnings
