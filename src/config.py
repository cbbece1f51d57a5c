"""
PLANIO Reminders — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite task store
    DATABASE_PATH: str = "data/planio.db"

    # Email provider: "resend" | "console"
    EMAIL_PROVIDER: str = "resend"
    RESEND_API_KEY: str = ""
    REMINDER_SENDER: str = "PLANIO <onboarding@resend.dev>"

    # Rendering
    TIMEZONE: str = "UTC"

    # Outbound sends in flight per invocation
    MAX_CONCURRENT_SENDS: int = 5

    # HTTP invocation endpoint
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    @field_validator("MAX_CONCURRENT_SENDS", mode="before")
    @classmethod
    def parse_concurrency(cls, v: str | int) -> int:
        value = int(v)
        if value < 1:
            raise ValueError("MAX_CONCURRENT_SENDS must be at least 1")
        return value

    @field_validator("API_PORT", mode="before")
    @classmethod
    def parse_port(cls, v: str | int) -> int:
        return int(v)


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    provider = os.getenv("EMAIL_PROVIDER", "resend")
    resend_key = os.getenv("RESEND_API_KEY", "")

    if provider.lower() == "resend" and (not resend_key or resend_key.startswith("your-")):
        print("ERROR: RESEND_API_KEY is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/planio.db"),
        EMAIL_PROVIDER=provider,
        RESEND_API_KEY=resend_key,
        REMINDER_SENDER=os.getenv("REMINDER_SENDER", "PLANIO <onboarding@resend.dev>"),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        MAX_CONCURRENT_SENDS=os.getenv("MAX_CONCURRENT_SENDS", "5"),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=os.getenv("API_PORT", "8000"),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
