"""
DocLedger Configuration
Environment-driven settings (pydantic-settings), cached per process.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings. Every field can be set as DOCLEDGER_<NAME>."""

    model_config = SettingsConfigDict(
        env_prefix="DOCLEDGER_",
        env_file=".env",
        extra="ignore",
    )

    # Application
    app_name: str = "DocLedger"
    app_version: str = "1.0.0"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None

    # Metadata store
    database_url: str = "sqlite+aiosqlite:///./data/docledger.db"

    # Blob storage
    blob_backend: Literal["local", "memory"] = "local"
    blob_root: str = "data/blobs"

    # Ledger
    ledger_backend: Literal["memory", "jsonl", "http"] = "jsonl"
    ledger_path: str = "data/ledger/attestations.jsonl"
    ledger_url: str | None = None
    ledger_api_key: str | None = None
    ledger_timeout_seconds: float = 10.0
    ledger_confirmation_delay_seconds: float = 0.0

    # Upload limits
    max_upload_size_mb: int = 5
    accepted_content_types: list[str] = Field(
        default_factory=lambda: [
            "application/pdf",
            "image/jpeg",
            "image/png",
            "image/webp",
        ]
    )

    @model_validator(mode="after")
    def _require_ledger_url(self) -> "Settings":
        if self.ledger_backend == "http" and not self.ledger_url:
            raise ValueError("DOCLEDGER_LEDGER_URL is required for the http ledger backend")
        return self

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance (FastAPI dependency)."""
    return Settings()
