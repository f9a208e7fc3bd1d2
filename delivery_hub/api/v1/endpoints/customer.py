"""Customer app endpoints: catalog, checkout, order tracking and ratings."""

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from delivery_hub.api.deps import get_controller, get_notifier, get_store, serialize_order, serialize_transition
from delivery_hub.core.errors import OrderNotFoundError
from delivery_hub.core.security import require_roles
from delivery_hub.db.session import get_db
from delivery_hub.models import Order, Product, Restaurant, User
from delivery_hub.schemas.catalog import ProductRead, RatingCreate, RatingRead, RestaurantRead
from delivery_hub.schemas.order import (
    CancelRequest,
    CheckoutRequest,
    CheckoutResponse,
    EtaResponse,
    OrderRead,
    TransitionResponse,
)
from delivery_hub.services.checkout_service import CheckoutLine, place_order
from delivery_hub.services.data_store import DataStore
from delivery_hub.services.notifications import OrderNotifier
from delivery_hub.services.order_controller import ActorContext, OrderStatusController, ensure_order_access
from delivery_hub.services.order_status import OrderEvent, allowed_events, status_step
from delivery_hub.services.rating_service import submit_rating

router: APIRouter = APIRouter()
customer_only = require_roles("CUSTOMER")


@router.get("/restaurants", response_model=list[RestaurantRead])
def list_restaurants(db: Session = Depends(get_db), current_user: User = Depends(customer_only)) -> list[Restaurant]:
    return list(db.scalars(select(Restaurant).where(Restaurant.is_active.is_(True)).order_by(Restaurant.name)).all())


@router.get("/restaurants/{restaurant_id}/products", response_model=list[ProductRead])
def list_products(
    restaurant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
) -> list[Product]:
    return list(
        db.scalars(
            select(Product)
            .where(Product.restaurant_id == restaurant_id, Product.is_available.is_(True))
            .order_by(Product.name)
        ).all()
    )


@router.post("/orders", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutRequest,
    store: DataStore = Depends(get_store),
    notifier: OrderNotifier = Depends(get_notifier),
    current_user: User = Depends(customer_only),
) -> CheckoutResponse:
    order, warnings = place_order(
        store,
        notifier,
        customer=current_user,
        restaurant_id=payload.restaurant_id,
        lines=[CheckoutLine(product_id=item.product_id, quantity=item.quantity, notes=item.notes) for item in payload.items],
        delivery_address=payload.delivery_address,
        delivery_latitude=payload.delivery_latitude,
        delivery_longitude=payload.delivery_longitude,
        payment_method=payload.payment_method,
        notes=payload.notes,
        tip=payload.tip,
        coupon_code=payload.coupon_code,
    )
    return CheckoutResponse(order=serialize_order(order), warnings=warnings)


@router.get("/orders", response_model=list[OrderRead])
def my_orders(db: Session = Depends(get_db), current_user: User = Depends(customer_only)) -> list[OrderRead]:
    orders = db.scalars(
        select(Order)
        .options(selectinload(Order.items))
        .where(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()
    return [serialize_order(order) for order in orders]


def _own_order(store: DataStore, order_id: int, user: User) -> Order:
    order = store.read_order(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    ensure_order_access(order, ActorContext.from_user(user))
    return order


@router.get("/orders/{order_id}", response_model=OrderRead)
def get_order(order_id: int, store: DataStore = Depends(get_store), current_user: User = Depends(customer_only)) -> OrderRead:
    return serialize_order(_own_order(store, order_id, current_user))


@router.post("/orders/{order_id}/cancel", response_model=TransitionResponse)
def cancel_order(
    order_id: int,
    payload: CancelRequest,
    controller: OrderStatusController = Depends(get_controller),
    current_user: User = Depends(customer_only),
) -> TransitionResponse:
    result = controller.apply_event(order_id, ActorContext.from_user(current_user), OrderEvent.CANCEL, reason=payload.reason)
    return serialize_transition(result)


@router.get("/orders/{order_id}/eta", response_model=EtaResponse)
def order_eta(
    order_id: int,
    controller: OrderStatusController = Depends(get_controller),
    current_user: User = Depends(customer_only),
) -> EtaResponse:
    order = _own_order(controller.store, order_id, current_user)
    return EtaResponse(
        order_id=order.id,
        status=order.status,
        eta_minutes=controller.estimate_eta(order),
        allowed_events=[event.value for event in allowed_events(order.status, "customer")],
        step=status_step(order.status),
    )


@router.post("/orders/{order_id}/rating", response_model=RatingRead, status_code=status.HTTP_201_CREATED)
def rate_order(
    order_id: int,
    payload: RatingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    return submit_rating(
        db,
        order_id=order_id,
        customer_id=current_user.id,
        restaurant_rating=payload.restaurant_rating,
        driver_rating=payload.driver_rating,
        comment=payload.comment,
    )
