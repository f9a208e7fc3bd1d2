"""Row builders and fake push dispatchers shared by the test modules."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from delivery_hub.core.errors import NotificationError
from delivery_hub.core.security import get_password_hash
from delivery_hub.models import DriverProfile, Order, OrderItem, Product, Restaurant, User


class RecordingDispatcher:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    def send_notification(self, token: str, title: str, body: str, data: dict) -> None:
        self.sent.append({"token": token, "title": title, "body": body, "data": data})

    def send_many(self, tokens: list[str], title: str, body: str, data: dict) -> int:
        for token in tokens:
            self.send_notification(token, title, body, data)
        return len(tokens)


class FailingDispatcher:
    def send_notification(self, token: str, title: str, body: str, data: dict) -> None:
        raise NotificationError("push service unavailable")

    def send_many(self, tokens: list[str], title: str, body: str, data: dict) -> int:
        raise NotificationError("push service unavailable")


def make_user(db: Session, email: str, role: str, *, push_token: str | None = None, password: str = "secret123") -> User:
    user = User(
        email=email,
        full_name=email.split("@")[0],
        password_hash=get_password_hash(password),
        role=role,
        push_token=push_token,
        is_active=True,
    )
    db.add(user)
    db.flush()
    if role == "DRIVER":
        db.add(DriverProfile(user_id=user.id, is_online=False))
    db.commit()
    db.refresh(user)
    return user


def make_restaurant(db: Session, owner: User | None = None, *, latitude: float | None = -12.05, longitude: float | None = -77.04) -> Restaurant:
    restaurant = Restaurant(
        owner_id=owner.id if owner else None,
        name="Pollería Central",
        address="Av. Arequipa 123",
        latitude=latitude,
        longitude=longitude,
        is_active=True,
    )
    db.add(restaurant)
    db.flush()
    db.add(Product(restaurant_id=restaurant.id, name="Pollo a la brasa", price=Decimal("20.00"), is_available=True))
    db.commit()
    db.refresh(restaurant)
    return restaurant


def make_order(
    db: Session,
    customer: User,
    restaurant: Restaurant,
    *,
    status: str = "pending",
    driver: User | None = None,
    delivery_fee: Decimal = Decimal("5.00"),
    delivery_latitude: float | None = -12.10,
    delivery_longitude: float | None = -77.04,
    created_at: datetime | None = None,
) -> Order:
    now = datetime.now(timezone.utc)
    order = Order(
        user_id=customer.id,
        restaurant_id=restaurant.id,
        driver_id=driver.id if driver else None,
        status=status,
        subtotal=Decimal("20.00"),
        delivery_fee=delivery_fee,
        total=Decimal("20.00") + delivery_fee,
        delivery_address="Jr. Lampa 456",
        delivery_latitude=delivery_latitude,
        delivery_longitude=delivery_longitude,
        created_at=created_at or now,
        updated_at=now,
        items=[OrderItem(name="Pollo a la brasa", unit_price=Decimal("20.00"), quantity=1, total_price=Decimal("20.00"))],
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    return order
