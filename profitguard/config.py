"""Configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "ProfitGuard"
    debug: bool = False
    log_level: str = "INFO"
    secret_key: str = "change-me"

    database_url: str = "sqlite+aiosqlite:///./profitguard.db"

    # Shopify Admin API
    shopify_shop_url: str = ""
    shopify_access_token: str = ""
    shopify_api_version: str = "2025-01"
    shopify_line_items_limit: int = 20
    shopify_timeout_seconds: float = 10.0

    # Auth
    admin_email: str = "merchant@example.com"
    admin_password: str = "changeme123"
    jwt_expire_minutes: int = 1440

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
