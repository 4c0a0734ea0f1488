"""
config.py — pydantic-settings Settings class.

All environment variables for the tender writer are declared here.
Both the writer package and its tests import `settings` from this module.

Usage:
    from tender_shared.config import settings
    print(settings.source_queue_url)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Queues (required at runtime)
    # -------------------------------------------------------------------------
    source_queue_url: str = Field(default="")
    failed_queue_url: str = Field(default="")
    aws_region: str | None = Field(default=None)

    # -------------------------------------------------------------------------
    # Relational store (required at runtime)
    # -------------------------------------------------------------------------
    database_url: str = Field(default="")
    db_echo: bool = Field(default=False)

    # -------------------------------------------------------------------------
    # Polling loop
    # -------------------------------------------------------------------------
    max_batch_size: int = Field(default=10, ge=1, le=10)
    receive_wait_seconds: int = Field(default=2, ge=0, le=20)
    visibility_timeout_seconds: int = Field(default=300, ge=0)
    time_safety_margin_seconds: float = Field(default=30.0, ge=0)
    poll_delay_seconds: float = Field(default=0.1, ge=0)
    transport_retry_attempts: int = Field(default=3, ge=1)

    # Written into every dead-letter envelope
    processed_by: str = Field(default="Sqs_Database_Writer")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    def missing_required(self) -> list[str]:
        """Return the env var names of required settings that are unset."""
        required = {
            "SOURCE_QUEUE_URL": self.source_queue_url,
            "FAILED_QUEUE_URL": self.failed_queue_url,
            "DATABASE_URL": self.database_url,
        }
        return [name for name, value in required.items() if not value]

    @field_validator("source_queue_url", "failed_queue_url", "database_url", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton, imported everywhere
# ---------------------------------------------------------------------------
settings = Settings()
