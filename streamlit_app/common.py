"""Shared helpers for the Streamlit admin, driver and customer apps."""

from datetime import datetime

import streamlit as st
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from delivery_hub.core.config import settings
from delivery_hub.core.errors import DeliveryHubError
from delivery_hub.core.security import create_user_token, verify_password
from delivery_hub.db.base import Base
from delivery_hub.services.app_state import AppState, SessionUser
from delivery_hub.services.blob_storage import LocalBlobStorage
from delivery_hub.services.change_relay import build_subscriptions
from delivery_hub.services.chat_service import OrderChat
from delivery_hub.services.data_store import DataStore
from delivery_hub.services.notifications import OrderNotifier, build_dispatcher
from delivery_hub.services.order_controller import ActorContext, OrderStatusController
from delivery_hub.services.order_status import actor_for_role
from delivery_hub.services.realtime import SubscriptionManager
from delivery_hub.services.user_service import get_user_by_email

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base.metadata.create_all(bind=engine)


def get_session() -> Session:
    return SessionLocal()


def now_string() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M")


@st.cache_resource
def _shared_services() -> tuple[SubscriptionManager, object, LocalBlobStorage]:
    return build_subscriptions(), build_dispatcher(), LocalBlobStorage()


def build_controller(db: Session) -> OrderStatusController:
    subscriptions, dispatcher, blob_storage = _shared_services()
    return OrderStatusController(
        store=DataStore(db, subscriptions),
        notifier=OrderNotifier(db, dispatcher),
        blob_storage=blob_storage,
    )


def app_state() -> AppState:
    if "app_state" not in st.session_state:
        st.session_state["app_state"] = AppState()
    return st.session_state["app_state"]


def actor_context() -> ActorContext:
    user = app_state().user
    return ActorContext(user_id=user.user_id, actor=actor_for_role(user.role))


def require_login(allowed_roles: set[str]) -> SessionUser:
    """Render a login form until a user with one of ``allowed_roles`` signs in."""
    state = app_state()
    if state.is_authenticated and state.user.role in allowed_roles:
        with st.sidebar:
            st.write(f"{state.user.full_name} ({state.user.role.lower()})")
            if st.button("Cerrar sesión"):
                state.reset()
                st.rerun()
        return state.user

    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Contraseña", type="password")
        submitted = st.form_submit_button("Ingresar")
    if submitted:
        with get_session() as db:
            user = get_user_by_email(db, email)
            if user is None or not verify_password(password, user.password_hash) or not user.is_active:
                st.error("Credenciales inválidas")
            elif user.role not in allowed_roles:
                st.error("Esta cuenta no tiene acceso a esta aplicación")
            else:
                state.init(
                    SessionUser(
                        user_id=user.id,
                        email=user.email,
                        role=user.role,
                        full_name=user.full_name,
                        access_token=create_user_token(user),
                    )
                )
                st.rerun()
    st.stop()


def show_result(warnings: list[str], success: str) -> None:
    st.success(success)
    for warning in warnings:
        st.warning(warning)


def run_action(action, success: str) -> None:
    """Run a controller call and surface domain errors as messages."""
    try:
        result = action()
    except DeliveryHubError as exc:
        st.error(exc.message)
        return
    show_result(result if isinstance(result, list) else [], success)


def render_order_chat(db: Session, order_id: int) -> None:
    """Chat with the other party of an order; opening it marks their messages read."""
    subscriptions, _, _ = _shared_services()
    chat = OrderChat(db, subscriptions)
    ctx = actor_context()
    try:
        chat.mark_read(order_id, ctx)
        messages = chat.list_messages(order_id, ctx)
    except DeliveryHubError as exc:
        st.error(exc.message)
        return
    for message in messages:
        with st.chat_message("user" if message.sender_id == ctx.user_id else "assistant"):
            st.write(message.content)
    text = st.text_input("Mensaje", key=f"chat_{order_id}")
    if st.button("Enviar", key=f"send_{order_id}"):
        try:
            chat.send(order_id, ctx, text)
        except DeliveryHubError as exc:
            st.error(exc.message)
            return
        st.rerun()
