"""Request-scoped wiring of the order services.

Long-lived collaborators (subscription manager, push dispatcher, blob
storage) live on ``app.state`` and are created once in ``main``; everything
that needs a database session is built per request here.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from delivery_hub.db.session import get_db
from delivery_hub.models import Order
from delivery_hub.schemas.order import OrderRead, TransitionResponse
from delivery_hub.services.blob_storage import BlobStorage
from delivery_hub.services.chat_service import OrderChat
from delivery_hub.services.data_store import DataStore
from delivery_hub.services.notifications import OrderNotifier
from delivery_hub.services.order_controller import OrderStatusController, TransitionResult
from delivery_hub.services.realtime import SubscriptionManager


def get_subscriptions(request: Request) -> SubscriptionManager:
    return request.app.state.subscriptions


def get_blob_storage(request: Request) -> BlobStorage:
    return request.app.state.blob_storage


def get_store(db: Session = Depends(get_db), subscriptions: SubscriptionManager = Depends(get_subscriptions)) -> DataStore:
    return DataStore(db, subscriptions)


def get_notifier(request: Request, db: Session = Depends(get_db)) -> OrderNotifier:
    return OrderNotifier(db, request.app.state.push_dispatcher)


def get_controller(
    store: DataStore = Depends(get_store),
    notifier: OrderNotifier = Depends(get_notifier),
    blob_storage: BlobStorage = Depends(get_blob_storage),
) -> OrderStatusController:
    return OrderStatusController(store=store, notifier=notifier, blob_storage=blob_storage)


def serialize_order(order: Order) -> OrderRead:
    return OrderRead.model_validate(order)


def serialize_transition(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        order=serialize_order(result.order),
        from_status=result.transition.from_status.value,
        to_status=result.transition.to_status.value,
        side_effects=[effect.value for effect in result.transition.side_effects],
        warnings=result.warnings,
        eta_minutes=result.eta_minutes,
    )


def get_chat(db: Session = Depends(get_db), subscriptions: SubscriptionManager = Depends(get_subscriptions)) -> OrderChat:
    return OrderChat(db, subscriptions)
