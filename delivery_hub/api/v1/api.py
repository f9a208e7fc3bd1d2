"""API v1 router composition."""

from fastapi import APIRouter

from delivery_hub.api.v1.endpoints import admin, auth, chat, customer, driver, realtime

api_router: APIRouter = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(customer.router, prefix="/customer", tags=["customer"])
api_router.include_router(driver.router, prefix="/driver", tags=["driver"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
api_router.include_router(realtime.router, prefix="/ws", tags=["realtime"])
