from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="POS_", extra="ignore")

    app_name: str = "Table POS Order Store"
    env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    # Order command/query service used by the editing workflow.
    order_api_base_url: str = "http://localhost:8000/api"
    order_api_timeout_seconds: int = 15
    order_api_key: str | None = Field(default=None, description="Sent as X-API-Key when set")

    # Reference order store service.
    database_url: str = "sqlite+pysqlite:///./tablepos.db"
    bootstrap_menu_on_startup: bool = False

    order_number_prefix: str = "ORD"
    initial_order_status: str = "served"
    initial_payment_status: str = "pending"
    generic_failure_message: str = "The order could not be saved. Please try again."

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return
        if not self.order_api_base_url.startswith("https://"):
            raise ValueError(
                "plain http order API is not allowed outside dev mode; set env var: POS_ORDER_API_BASE_URL"
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
