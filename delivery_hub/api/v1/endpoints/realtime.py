"""Live order tracking and order chat over WebSocket.

A socket first receives a ``SNAPSHOT`` of the current rows, then every change
published for its table filtered on the order. Writes happen in worker
threads, so events are handed to the socket's loop thread-safely.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from delivery_hub.core.errors import DeliveryHubError
from delivery_hub.core.security import user_from_token
from delivery_hub.db import session as db_session
from delivery_hub.models import Order
from delivery_hub.services.chat_service import OrderChat, message_to_row
from delivery_hub.services.data_store import order_to_row
from delivery_hub.services.order_controller import ActorContext, ensure_order_access
from delivery_hub.services.realtime import ChangeEvent, SubscriptionManager

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


def _authorized_snapshot(order_id: int, token: str) -> dict:
    with db_session.SessionLocal() as db:
        user = user_from_token(token, db)
        order = db.get(Order, order_id)
        if order is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        ensure_order_access(order, ActorContext.from_user(user))
        return order_to_row(order)


def _chat_snapshot(order_id: int, token: str, subscriptions: SubscriptionManager) -> list[dict]:
    with db_session.SessionLocal() as db:
        user = user_from_token(token, db)
        chat = OrderChat(db, subscriptions)
        return [message_to_row(message) for message in chat.list_messages(order_id, ActorContext.from_user(user))]


async def _serve_feed(
    websocket: WebSocket,
    table: str,
    order_id: int,
    load_snapshot: Callable[[], Any],
    row_filter: dict[str, Any],
) -> None:
    try:
        snapshot = await run_in_threadpool(load_snapshot)
    except (HTTPException, DeliveryHubError) as exc:
        logger.info("[REALTIME] rejected %s feed order_id=%s: %s", table, order_id, getattr(exc, "detail", None) or exc)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await websocket.send_json({"table": table, "event": "SNAPSHOT", "new": snapshot, "old": None})

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
    subscriptions: SubscriptionManager = websocket.app.state.subscriptions
    subscription = subscriptions.subscribe(
        table,
        row_filter,
        lambda event: loop.call_soon_threadsafe(queue.put_nowait, event),
    )

    async def forward() -> None:
        while True:
            event = await queue.get()
            await websocket.send_json(event.as_payload())

    async def drain() -> None:
        while True:
            await websocket.receive_text()

    tasks = [asyncio.create_task(forward()), asyncio.create_task(drain())]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is None or isinstance(exc, WebSocketDisconnect):
                logger.debug("[REALTIME] %s feed closed order_id=%s", table, order_id)
            else:
                logger.warning("[REALTIME] %s feed failed order_id=%s: %r", table, order_id, exc)
    finally:
        subscription.unsubscribe()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


@router.websocket("/orders/{order_id}")
async def order_feed(websocket: WebSocket, order_id: int, token: str = "") -> None:
    await _serve_feed(
        websocket,
        "orders",
        order_id,
        lambda: _authorized_snapshot(order_id, token),
        {"id": order_id},
    )


@router.websocket("/orders/{order_id}/messages")
async def message_feed(websocket: WebSocket, order_id: int, token: str = "") -> None:
    subscriptions: SubscriptionManager = websocket.app.state.subscriptions
    await _serve_feed(
        websocket,
        "messages",
        order_id,
        lambda: _chat_snapshot(order_id, token, subscriptions),
        {"order_id": order_id},
    )
