"""Per-order chat between the customer, the assigned driver and support."""

from fastapi import APIRouter, Depends, status

from delivery_hub.api.deps import get_chat
from delivery_hub.core.security import require_roles
from delivery_hub.models import Message, User
from delivery_hub.schemas.chat import MarkReadResponse, MessageCreate, MessageRead
from delivery_hub.services.chat_service import OrderChat
from delivery_hub.services.order_controller import ActorContext

router: APIRouter = APIRouter()
participants = require_roles("CUSTOMER", "DRIVER", "ADMIN")


@router.get("/orders/{order_id}/messages", response_model=list[MessageRead])
def list_messages(
    order_id: int,
    chat: OrderChat = Depends(get_chat),
    current_user: User = Depends(participants),
) -> list[Message]:
    return chat.list_messages(order_id, ActorContext.from_user(current_user))


@router.post("/orders/{order_id}/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
def send_message(
    order_id: int,
    payload: MessageCreate,
    chat: OrderChat = Depends(get_chat),
    current_user: User = Depends(participants),
) -> Message:
    return chat.send(order_id, ActorContext.from_user(current_user), payload.content)


@router.post("/orders/{order_id}/messages/read", response_model=MarkReadResponse)
def mark_read(
    order_id: int,
    chat: OrderChat = Depends(get_chat),
    current_user: User = Depends(participants),
) -> MarkReadResponse:
    return MarkReadResponse(marked=chat.mark_read(order_id, ActorContext.from_user(current_user)))
