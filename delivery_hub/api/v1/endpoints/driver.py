"""Driver app endpoints."""

from pathlib import Path

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from delivery_hub.api.deps import get_controller, serialize_order, serialize_transition
from delivery_hub.core.security import require_roles
from delivery_hub.db.session import get_db
from delivery_hub.models import User
from delivery_hub.schemas.driver import DriverProfileRead, EarningsResponse, OnlineRequest, PositionRequest
from delivery_hub.schemas.order import ClaimResponse, OrderRead, TransitionResponse
from delivery_hub.services.driver_service import available_orders, driver_orders, set_online, update_position
from delivery_hub.services.earnings_service import driver_earnings
from delivery_hub.services.order_controller import ActorContext, OrderStatusController, ProofPhoto
from delivery_hub.services.order_status import OrderEvent

router: APIRouter = APIRouter()
driver_only = require_roles("DRIVER")


@router.get("/orders/available", response_model=list[OrderRead])
def list_available(db: Session = Depends(get_db), current_user: User = Depends(driver_only)) -> list[OrderRead]:
    return [serialize_order(order) for order in available_orders(db)]


@router.get("/orders", response_model=list[OrderRead])
def list_mine(
    history: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(driver_only),
) -> list[OrderRead]:
    return [serialize_order(order) for order in driver_orders(db, current_user.id, active=not history)]


@router.post("/orders/{order_id}/claim", response_model=ClaimResponse)
def claim(
    order_id: int,
    controller: OrderStatusController = Depends(get_controller),
    current_user: User = Depends(driver_only),
) -> ClaimResponse:
    result = controller.claim_order(order_id, ActorContext.from_user(current_user))
    return ClaimResponse(
        claimed=result.claimed,
        reason=result.reason,
        order=serialize_order(result.order) if result.order is not None else None,
        warnings=result.warnings,
    )


@router.post("/orders/{order_id}/pickup", response_model=TransitionResponse)
def pickup(
    order_id: int,
    controller: OrderStatusController = Depends(get_controller),
    current_user: User = Depends(driver_only),
) -> TransitionResponse:
    result = controller.apply_event(order_id, ActorContext.from_user(current_user), OrderEvent.MARK_EN_ROUTE)
    return serialize_transition(result)


@router.post("/orders/{order_id}/deliver", response_model=TransitionResponse)
def deliver(
    order_id: int,
    photo: UploadFile | None = File(default=None),
    controller: OrderStatusController = Depends(get_controller),
    current_user: User = Depends(driver_only),
) -> TransitionResponse:
    proof = None
    if photo is not None:
        data = photo.file.read()
        if data:
            extension = Path(photo.filename or "").suffix.lstrip(".") or "jpg"
            proof = ProofPhoto(data=data, extension=extension)
    result = controller.apply_event(order_id, ActorContext.from_user(current_user), OrderEvent.FINISH_DELIVERY, proof=proof)
    return serialize_transition(result)


@router.put("/status", response_model=DriverProfileRead)
def go_online(payload: OnlineRequest, db: Session = Depends(get_db), current_user: User = Depends(driver_only)):
    return set_online(db, current_user, payload.is_online)


@router.put("/position", response_model=DriverProfileRead)
def report_position(payload: PositionRequest, db: Session = Depends(get_db), current_user: User = Depends(driver_only)):
    return update_position(db, current_user, payload.latitude, payload.longitude)


@router.get("/earnings", response_model=EarningsResponse)
def earnings(db: Session = Depends(get_db), current_user: User = Depends(driver_only)) -> EarningsResponse:
    return EarningsResponse.model_validate(driver_earnings(db, current_user.id))
