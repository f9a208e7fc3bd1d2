"""Admin and restaurant dashboard endpoints."""

from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from delivery_hub.api.deps import get_controller, serialize_order, serialize_transition
from delivery_hub.core.errors import OrderNotFoundError, PermissionDeniedError
from delivery_hub.core.security import get_password_hash, require_roles
from delivery_hub.db.session import get_db
from delivery_hub.models import Coupon, Product, Restaurant, User
from delivery_hub.schemas.auth import AuthUserResponse, RegisterRequest
from delivery_hub.schemas.catalog import (
    CouponCreate,
    CouponRead,
    ProductCreate,
    ProductRead,
    RestaurantCreate,
    RestaurantRead,
)
from delivery_hub.schemas.driver import DriverProfileRead
from delivery_hub.schemas.order import AuditEntryRead, OrderEventRequest, OrderRead, ReassignRequest, TransitionResponse
from delivery_hub.schemas.stats import DashboardStatsResponse
from delivery_hub.services.audit_service import order_audit_trail
from delivery_hub.services.export_service import (
    export_filename,
    list_orders,
    order_export_row,
    render_orders_csv,
    render_orders_pdf,
)
from delivery_hub.services.driver_service import online_drivers
from delivery_hub.services.order_controller import ActorContext, OrderStatusController, ensure_order_access
from delivery_hub.services.stats_service import dashboard_stats
from delivery_hub.services.user_service import create_user, get_user_by_email

router: APIRouter = APIRouter()
staff_only = require_roles("ADMIN", "RESTAURANT")
admin_only = require_roles("ADMIN")


def _owner_filter(user: User) -> int | None:
    return None if user.role == "ADMIN" else user.id


def _owned_restaurant(db: Session, restaurant_id: int, user: User) -> Restaurant:
    restaurant = db.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
    if user.role != "ADMIN" and restaurant.owner_id != user.id:
        raise PermissionDeniedError("Restaurant belongs to another owner")
    return restaurant


@router.get("/orders", response_model=list[OrderRead])
def orders(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only),
) -> list[OrderRead]:
    rows = list_orders(db, status=status_filter, owner_id=_owner_filter(current_user), limit=min(max(limit, 1), 500))
    return [serialize_order(order) for order in rows]


@router.get("/orders/export.csv")
def export_orders_csv(
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only),
) -> Response:
    rows = [order_export_row(order) for order in list_orders(db, status=status_filter, owner_id=_owner_filter(current_user), limit=1000)]
    return Response(
        content=render_orders_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/orders/report.pdf")
def export_orders_pdf(
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only),
) -> Response:
    rows = [order_export_row(order) for order in list_orders(db, status=status_filter, owner_id=_owner_filter(current_user), limit=1000)]
    meta = {
        "today": date.today().isoformat(),
        "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
    }
    return Response(
        content=render_orders_pdf(rows, meta),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(extension="pdf")}"'},
    )


@router.post("/orders/{order_id}/events", response_model=TransitionResponse)
def fire_event(
    order_id: int,
    payload: OrderEventRequest,
    controller: OrderStatusController = Depends(get_controller),
    current_user: User = Depends(staff_only),
) -> TransitionResponse:
    result = controller.apply_event(order_id, ActorContext.from_user(current_user), payload.event, reason=payload.reason)
    return serialize_transition(result)


@router.put("/orders/{order_id}/driver", response_model=OrderRead)
def reassign_driver(
    order_id: int,
    payload: ReassignRequest,
    controller: OrderStatusController = Depends(get_controller),
    current_user: User = Depends(admin_only),
) -> OrderRead:
    return serialize_order(controller.reassign_driver(order_id, ActorContext.from_user(current_user), payload.driver_id))


@router.get("/orders/{order_id}/history", response_model=list[AuditEntryRead])
def order_history(
    order_id: int,
    controller: OrderStatusController = Depends(get_controller),
    current_user: User = Depends(staff_only),
) -> list[AuditEntryRead]:
    order = controller.store.read_order(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    ensure_order_access(order, ActorContext.from_user(current_user))
    return [AuditEntryRead.model_validate(entry) for entry in order_audit_trail(controller.store.db, order_id)]


@router.get("/stats", response_model=DashboardStatsResponse)
def stats(db: Session = Depends(get_db), current_user: User = Depends(staff_only)) -> DashboardStatsResponse:
    return DashboardStatsResponse.model_validate(dashboard_stats(db, owner_id=_owner_filter(current_user)))


@router.get("/drivers/online")
def drivers_online(db: Session = Depends(get_db), current_user: User = Depends(staff_only)) -> list[dict]:
    return [
        {"id": user.id, "full_name": user.full_name, "profile": DriverProfileRead.model_validate(profile).model_dump()}
        for user, profile in online_drivers(db)
    ]


@router.get("/restaurants", response_model=list[RestaurantRead])
def restaurants(db: Session = Depends(get_db), current_user: User = Depends(staff_only)) -> list[Restaurant]:
    query = select(Restaurant).order_by(Restaurant.name)
    if current_user.role != "ADMIN":
        query = query.where(Restaurant.owner_id == current_user.id)
    return list(db.scalars(query).all())


@router.post("/restaurants", response_model=RestaurantRead, status_code=status.HTTP_201_CREATED)
def create_restaurant(payload: RestaurantCreate, db: Session = Depends(get_db), current_user: User = Depends(admin_only)) -> Restaurant:
    if payload.owner_id is not None:
        owner = db.get(User, payload.owner_id)
        if owner is None or owner.role != "RESTAURANT":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Owner must be a restaurant account")
    restaurant = Restaurant(**payload.model_dump())
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    return restaurant


@router.get("/restaurants/{restaurant_id}/products", response_model=list[ProductRead])
def products(
    restaurant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only),
) -> list[Product]:
    _owned_restaurant(db, restaurant_id, current_user)
    return list(db.scalars(select(Product).where(Product.restaurant_id == restaurant_id).order_by(Product.name)).all())


@router.post("/restaurants/{restaurant_id}/products", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(
    restaurant_id: int,
    payload: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only),
) -> Product:
    restaurant = _owned_restaurant(db, restaurant_id, current_user)
    product = Product(restaurant_id=restaurant.id, **payload.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@router.get("/coupons", response_model=list[CouponRead])
def coupons(db: Session = Depends(get_db), current_user: User = Depends(admin_only)) -> list[Coupon]:
    return list(db.scalars(select(Coupon).order_by(Coupon.code)).all())


@router.post("/coupons", response_model=CouponRead, status_code=status.HTTP_201_CREATED)
def create_coupon(payload: CouponCreate, db: Session = Depends(get_db), current_user: User = Depends(admin_only)) -> Coupon:
    if payload.discount_type not in {"percentage", "fixed"}:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="discount_type must be percentage or fixed")
    if payload.discount_type == "percentage" and payload.discount_value > Decimal("100"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Percentage discount cannot exceed 100")
    coupon = Coupon(**{**payload.model_dump(), "code": payload.code.strip().upper()})
    db.add(coupon)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Coupon code already exists") from exc
    db.refresh(coupon)
    return coupon


@router.post("/users", response_model=AuthUserResponse, status_code=status.HTTP_201_CREATED)
def create_staff_user(payload: RegisterRequest, db: Session = Depends(get_db), current_user: User = Depends(admin_only)) -> AuthUserResponse:
    if get_user_by_email(db=db, email=payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    try:
        user = create_user(
            db=db,
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            role=payload.role,
            full_name=payload.full_name,
            phone=payload.phone,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AuthUserResponse.model_validate(user)
