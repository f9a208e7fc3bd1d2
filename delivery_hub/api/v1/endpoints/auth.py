"""Authentication endpoints (API JWT)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from delivery_hub.core.security import create_user_token, get_current_user, get_password_hash, verify_password
from delivery_hub.db.session import get_db
from delivery_hub.models.user import User, normalize_user_role
from delivery_hub.schemas.auth import AuthUserResponse, LoginRequest, PushTokenRequest, RegisterRequest, TokenResponse
from delivery_hub.services.user_service import create_user, get_user_by_email, save_push_token

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)
SELF_SERVICE_ROLES: set[str] = {"CUSTOMER", "DRIVER"}


@router.post("/register", response_model=AuthUserResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthUserResponse:
    try:
        role = normalize_user_role(payload.role)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if role not in SELF_SERVICE_ROLES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid role")
    if len(payload.password) < 6:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password must have at least 6 characters")
    if get_user_by_email(db=db, email=payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    user = create_user(
        db=db,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=role,
        full_name=payload.full_name,
        phone=payload.phone,
    )
    logger.info("[AUTH] registered user_id=%s role=%s", user.id, user.role)
    return AuthUserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    user: User | None = get_user_by_email(db=db, email=payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")
    return TokenResponse(access_token=create_user_token(user))


@router.get("/me", response_model=AuthUserResponse)
def me(current_user: User = Depends(get_current_user)) -> AuthUserResponse:
    return AuthUserResponse.model_validate(current_user)


@router.put("/push-token", response_model=AuthUserResponse)
def update_push_token(
    payload: PushTokenRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AuthUserResponse:
    return AuthUserResponse.model_validate(save_push_token(db, current_user, payload.push_token))
