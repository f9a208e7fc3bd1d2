"""Shared SQLAlchemy base declarative class and model imports."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""


# Import model modules so metadata is populated before create_all.
from delivery_hub.models import audit_log as _audit_log  # noqa: E402,F401
from delivery_hub.models import coupon as _coupon  # noqa: E402,F401
from delivery_hub.models import order as _order  # noqa: E402,F401
from delivery_hub.models import rating as _rating  # noqa: E402,F401
from delivery_hub.models import restaurant as _restaurant  # noqa: E402,F401
from delivery_hub.models import user as _user  # noqa: E402,F401
