"""FastAPI entrypoint for the delivery platform API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from delivery_hub.api.v1.api import api_router
from delivery_hub.core.config import settings
from delivery_hub.core.errors import DeliveryHubError
from delivery_hub.db import session as db_session
from delivery_hub.db.base import Base
from delivery_hub.db.seed import ensure_seed_data
from delivery_hub.services.blob_storage import LocalBlobStorage
from delivery_hub.services.change_relay import RedisChangeRelay, build_subscriptions
from delivery_hub.services.notifications import build_dispatcher

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.state.subscriptions = build_subscriptions()
app.state.push_dispatcher = build_dispatcher()
app.state.blob_storage = LocalBlobStorage()
app.include_router(api_router, prefix="/api/v1")
app.mount("/media", StaticFiles(directory=settings.media_root, check_dir=False), name="media")


@app.exception_handler(DeliveryHubError)
async def handle_domain_error(request: Request, exc: DeliveryHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("[API] %s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
def startup() -> None:
    Base.metadata.create_all(bind=db_session.engine)
    with db_session.SessionLocal() as session:
        try:
            ensure_seed_data(session)
        except Exception:
            logger.exception("[BOOTSTRAP] Seed/bootstrap failed; continuing startup.")
    logger.info("[BOOTSTRAP] %s ready env=%s push_enabled=%s", settings.app_name, settings.app_env, settings.push_enabled)


@app.on_event("shutdown")
def shutdown() -> None:
    relay = app.state.subscriptions.relay
    if isinstance(relay, RedisChangeRelay):
        relay.stop()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
