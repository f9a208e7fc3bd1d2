"""Application configuration."""

from decimal import Decimal
from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "Delivery Hub API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./delivery_hub.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    admin_email: str = getenv("ADMIN_EMAIL", "admin@delivery.local")
    admin_password: str = getenv("ADMIN_PASSWORD", "admin123")
    seed_demo_data: bool = getenv("SEED_DEMO_DATA", "0") == "1"
    push_enabled: bool = getenv("PUSH_ENABLED", "0") == "1"
    expo_push_url: str = getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
    push_timeout_seconds: float = float(getenv("PUSH_TIMEOUT_SECONDS", "10"))
    media_root: str = getenv("MEDIA_ROOT", "./media")
    media_base_url: str = getenv("MEDIA_BASE_URL", "http://localhost:8000/media")
    default_delivery_fee: Decimal = Decimal(getenv("DEFAULT_DELIVERY_FEE", "5.00"))
    driver_notify_radius_km: float = float(getenv("DRIVER_NOTIFY_RADIUS_KM", "10"))
    api_base_url: str = getenv("API_BASE_URL", "http://localhost:8000/api/v1")
    redis_url: str = getenv("REDIS_URL", "")


settings: Settings = Settings()
