"""Application configuration using pydantic-settings."""

from typing import List, Literal
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream selection
    data_source: Literal["gas", "supabase"] = "gas"

    # Google Apps Script endpoint (spreadsheet-backed)
    gas_api_url: str = ""

    # Supabase (PostgREST)
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_orders_table: str = "orders"
    supabase_page_size: int = 1000

    request_timeout_seconds: float = 30.0

    # Reporting
    report_timezone: str = "Asia/Tokyo"  # empty = process-local clock
    profit_source: Literal["supplied", "computed"] = "supplied"
    profit_tolerance: float = 1.0

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
