"""Backend configuration using Pydantic settings."""

from functools import lru_cache
from typing import Dict, List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Backend settings loaded from environment variables (BCA_ prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="BCA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "BillBuddy BCA Statement Parser"
    version: str = "1.0.0"
    log_level: str = "INFO"

    # Vite and other dev servers
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_headers: List[str] = ["authorization", "x-client-info", "apikey", "content-type"]

    # Bearer token -> user id, used by the in-memory authenticator
    api_tokens: Dict[str, str] = {}

    storage_bucket: str = "bank-statements"
    public_base_url: str = "http://localhost:8000/storage"
    default_template: str = "bca_mutasi_v1"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
