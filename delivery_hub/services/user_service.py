"""User service operations."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from delivery_hub.models import DriverProfile, User
from delivery_hub.models.user import normalize_user_role


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == email.strip().lower()).limit(1))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def create_user(
    db: Session,
    email: str,
    hashed_password: str,
    role: str,
    full_name: str = "",
    phone: str | None = None,
) -> User:
    canonical_role = normalize_user_role(role)
    user = User(
        email=email.strip().lower(),
        full_name=full_name or email.split("@")[0],
        password_hash=hashed_password,
        role=canonical_role,
        phone=phone,
        is_active=True,
    )
    db.add(user)
    db.flush()

    if canonical_role == "DRIVER":
        db.add(DriverProfile(user_id=user.id, is_online=False))

    db.commit()
    db.refresh(user)
    return user


def save_push_token(db: Session, user: User, token: str | None) -> User:
    user.push_token = token or None
    db.commit()
    db.refresh(user)
    return user


def list_users(db: Session, role: str | None = None) -> list[User]:
    query = select(User).order_by(User.id)
    if role:
        query = query.where(User.role == normalize_user_role(role))
    return list(db.scalars(query).all())
