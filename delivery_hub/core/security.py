"""Password hashing, bearer tokens and role guards for the delivery API."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from delivery_hub.core.config import settings
from delivery_hub.db.session import get_db
from delivery_hub.models.user import User
from delivery_hub.services.user_service import get_user_by_id

pwd_context: CryptContext = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme: HTTPBearer = HTTPBearer(auto_error=True)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def create_user_token(user: User, expires_minutes: int | None = None) -> str:
    """Issue a signed bearer token carrying the user id and role."""
    lifetime = timedelta(minutes=expires_minutes or settings.jwt_expire_minutes)
    claims: dict[str, Any] = {
        "sub": str(user.id),
        "role": user.role,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise _credentials_error("Could not validate credentials") from exc


def user_from_token(token: str, db: Session) -> User:
    """Resolve an active user from a raw token (also used by the WebSocket feed).

    A token issued before the account's role changed is rejected so that the
    holder has to sign in again with the new role.
    """
    claims = decode_token(token)
    try:
        user_id = int(claims.get("sub"))
    except (TypeError, ValueError) as exc:
        raise _credentials_error("Invalid authentication token") from exc

    user: User | None = get_user_by_id(db=db, user_id=user_id)
    if user is None or not user.is_active:
        raise _credentials_error("User not found")
    if claims.get("role") != user.role:
        raise _credentials_error("Role changed, sign in again")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    return user_from_token(credentials.credentials, db)


def require_roles(*roles: str) -> Callable[..., User]:
    """Build a dependency that only lets the given roles through."""
    allowed = {role.upper() for role in roles}

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current_user

    return _checker
