# app/core/config.py
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Restaurant API"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./restaurant.db"
    database_echo: bool = False

    cors_origins: List[str] = ["*"]
    frontend_url: str = "http://localhost:5173"
    cookie_secure: bool = False

    # Stripe hosted checkout
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    # local development only: accept webhook payloads without a signature
    stripe_allow_unsigned_webhooks: bool = False
    currency: str = "usd"

    # Reservations: one slot every N minutes from opening until closing
    reservation_opening_time: str = "16:00"
    reservation_closing_time: str = "24:00"
    reservation_slot_minutes: int = 120
    restaurant_timezone: str = "America/New_York"

    # Product images
    upload_dir: str = "app/static/uploads/products"
    do_spaces_key: Optional[str] = None
    do_spaces_secret: Optional[str] = None
    do_spaces_region: str = "nyc3"
    do_spaces_bucket: Optional[str] = None
    do_spaces_endpoint: Optional[str] = None
    do_spaces_cdn_base: Optional[str] = None
    do_spaces_prefix: str = "prod"

    # Order confirmation emails
    resend_api_key: Optional[str] = None
    from_email: Optional[str] = None

    # Seeded on startup when no admin exists
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    @property
    def spaces_configured(self) -> bool:
        return all([
            self.do_spaces_key,
            self.do_spaces_secret,
            self.do_spaces_bucket,
            self.do_spaces_endpoint,
            self.do_spaces_cdn_base,
        ])


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
