"""
Application Configuration — Environment & Settings
Centralizes all config from .env with Pydantic Settings for validation.
Constructed once and injected into services; business logic never reads os.environ.
"""
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # --- Core ---
    APP_NAME: str = "Sakina Payments API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # --- Database ---
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'payments.db'}"

    # --- HTTP ---
    CORS_ORIGINS: list[str] = ["*"]

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # --- Alif Bank gateway ---
    ALIF_MERCHANT_ID: str = ""
    ALIF_SECRET_KEY: str = ""
    ALIF_API_URL: str = "https://test-web.alif.tj"
    ALIF_REQUIRE_CALLBACK_TOKEN: bool = False
    GATEWAY_TIMEOUT_SECONDS: float = 15.0

    # --- Public URLs ---
    PUBLIC_BASE_URL: str = "http://localhost:8000"   # where the gateway reaches the callback
    SITE_URL: str = "http://localhost:5173"          # storefront, used for the return URL

    # --- Orders ---
    ORDER_ID_PREFIX: str = "SAKINA"
    DEFAULT_CURRENCY: str = "TJS"
    DEFAULT_GATE: str = "korti_milli"
    STALE_PAYMENT_MINUTES: int = 30

    # --- SMS ---
    SMS_API_URL: str = "https://sms2.aliftech.net/api/v1/sms/bulk"
    SMS_API_KEY: str = ""
    SMS_SENDER: str = "SAKINA"
    SMS_TIMEOUT_SECONDS: float = 10.0
    MANAGER_PHONE: str = ""
    DELIVERY_PHONE: str = ""

    @property
    def callback_url(self) -> str:
        return f"{self.PUBLIC_BASE_URL.rstrip('/')}/api/payment/callback"

    def return_url(self, order_id: str) -> str:
        return f"{self.SITE_URL.rstrip('/')}/payment/success?order_id={order_id}"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
