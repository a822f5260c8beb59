"""Runtime configuration, read from ``BACKOFFICE_*`` variables or a .env file."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BACKOFFICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    data_dir: Path = Path("data")

    # Locking / retries
    lock_timeout_seconds: float = 5.0
    contention_retries: int = 3
    retry_backoff_seconds: float = 0.05

    # Money
    payment_tolerance: Decimal = Decimal("0.05")
    currency: str = "BRL"

    # Logging
    log_level: str = "INFO"

    @property
    def database_file(self) -> Path:
        return self.data_dir / "backoffice.json"

    @property
    def lock_dir(self) -> Path:
        return self.data_dir / "locks"


@lru_cache
def get_settings() -> Settings:
    return Settings()
