"""Shared fixtures: a throwaway SQLite database and a wired order controller."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from delivery_hub.db.base import Base
from delivery_hub.services.blob_storage import LocalBlobStorage
from delivery_hub.services.data_store import DataStore
from delivery_hub.services.notifications import OrderNotifier
from delivery_hub.services.order_controller import OrderStatusController
from delivery_hub.services.realtime import SubscriptionManager
from tests.factories import RecordingDispatcher


def build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
def session_local(tmp_path: Path) -> sessionmaker:
    engine = build_test_engine(tmp_path / "test.db")
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_local: sessionmaker) -> Session:
    with session_local() as session:
        yield session


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def subscriptions() -> SubscriptionManager:
    return SubscriptionManager()


@pytest.fixture
def controller(db: Session, dispatcher: RecordingDispatcher, subscriptions: SubscriptionManager, tmp_path: Path):
    return OrderStatusController(
        store=DataStore(db, subscriptions),
        notifier=OrderNotifier(db, dispatcher),
        blob_storage=LocalBlobStorage(tmp_path / "media", "http://testserver/media"),
    )
