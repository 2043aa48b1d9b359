"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. The escrow policy knobs
(hash function, safety deposit accounting, withdrawal deadline) live here so
that every factory built from the same settings hands out escrows with the
same rules.

Usage:
    from htlc_escrow.config import get_settings
    settings = get_settings()
    print(settings.hash_algorithm)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the HTLC escrow service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # --- Read model database ---
    database_url: str = "sqlite+aiosqlite:///./escrow_index.db"
    db_echo_sql: bool = False

    # --- Escrow policy ---
    hash_algorithm: Literal["sha256", "sha3_256", "blake2b"] = "sha256"
    # When set, native escrows must be funded with amount + safety deposit and
    # token escrows with exactly the safety deposit in native value.
    require_safety_deposit: bool = False
    # When set, withdraw is rejected at or after the cancellation deadline.
    enforce_withdrawal_deadline: bool = False

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
