"""Database seeding helpers."""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from delivery_hub.core.config import settings
from delivery_hub.core.security import get_password_hash
from delivery_hub.models import Product, Restaurant
from delivery_hub.services.user_service import create_user, get_user_by_email

logger = logging.getLogger(__name__)


def ensure_admin_user(session: Session) -> bool:
    """Ensure the configured admin account exists. Returns True if it already existed."""
    if get_user_by_email(db=session, email=settings.admin_email) is not None:
        return True
    create_user(
        db=session,
        email=settings.admin_email,
        hashed_password=get_password_hash(settings.admin_password),
        role="ADMIN",
        full_name="Administrador",
    )
    logger.warning("[BOOTSTRAP] Default admin account created: %s. Change the password immediately.", settings.admin_email)
    return False


def ensure_demo_catalog(session: Session) -> None:
    """Create one demo restaurant with a few products when SEED_DEMO_DATA=1."""
    if not settings.seed_demo_data:
        return
    if session.scalar(select(Restaurant.id).limit(1)) is not None:
        return

    restaurant = Restaurant(
        name="Pollería Demo",
        address="Av. Arequipa 123, Lima",
        latitude=-12.05,
        longitude=-77.04,
        is_active=True,
    )
    session.add(restaurant)
    session.flush()
    session.add_all(
        [
            Product(restaurant_id=restaurant.id, name="1/4 Pollo a la brasa", price=Decimal("18.90")),
            Product(restaurant_id=restaurant.id, name="Papas fritas", price=Decimal("8.50")),
            Product(restaurant_id=restaurant.id, name="Inca Kola 500ml", price=Decimal("4.00")),
        ]
    )
    session.commit()
    logger.info("[BOOTSTRAP] demo restaurant seeded")


def ensure_seed_data(session: Session) -> None:
    ensure_admin_user(session)
    ensure_demo_catalog(session)
