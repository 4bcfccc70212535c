"""
Routine Assistant: Centralized configuration.

Loads all settings from .env and validates them. Only the host layers
(bot, heartbeat job, service factory) read these; the engine receives its
data directory and clock explicitly.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Storage: one JSON document per domain lives here
    DATA_DIR: str = "data"

    # Telegram host (only needed when running the bot)
    TELEGRAM_BOT_TOKEN: str = ""
    ALLOWED_USER_IDS: list[int] = []

    # Heartbeat cadence; a reminder fires only in its exact minute
    HEARTBEAT_INTERVAL_SECONDS: int = 60

    LOG_LEVEL: str = "INFO"

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("HEARTBEAT_INTERVAL_SECONDS", mode="before")
    @classmethod
    def parse_interval(cls, v: str | int) -> int:
        value = int(v)
        if not 1 <= value <= 60:
            raise ValueError("HEARTBEAT_INTERVAL_SECONDS must be between 1 and 60")
        return value

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def parse_log_level(cls, v: str) -> str:
        return str(v).strip().upper() or "INFO"


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        DATA_DIR=os.getenv("DATA_DIR", "data"),
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        HEARTBEAT_INTERVAL_SECONDS=os.getenv("HEARTBEAT_INTERVAL_SECONDS", "60"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton, imported by host modules as:
#   from src.config import settings
settings = _load_settings()
