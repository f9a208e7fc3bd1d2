"""User and driver profile ORM models."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from delivery_hub.db.base import Base

USER_ROLES = ("ADMIN", "RESTAURANT", "DRIVER", "CUSTOMER")


def normalize_user_role(role: str | None) -> str:
    """Return canonical upper-case role or raise ValueError for unknown values."""
    normalized = str(role or "").strip().upper()
    if normalized not in USER_ROLES:
        raise ValueError(f"Unknown role: {role!r}")
    return normalized


class User(Base):
    """Platform account shared by admins, restaurant staff, drivers and customers."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Enum(*USER_ROLES, name="user_role"), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    push_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    driver_profile: Mapped["DriverProfile | None"] = relationship(back_populates="user", uselist=False)


class DriverProfile(Base):
    """Availability and last known position of a driver."""

    __tablename__ = "driver_profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, unique=True)
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    vehicle_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    current_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user: Mapped[User] = relationship(back_populates="driver_profile")
