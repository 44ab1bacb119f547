"""
BingeBreaker — Centralized configuration.

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

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # LLM — provider-agnostic (gemini, anthropic, openai, cohere)
    LLM_PROVIDER: str = "gemini"
    LLM_MODEL: str = ""          # empty → smart default per provider
    LLM_API_KEY: str

    # Storage backend: "sqlite" | "json" | "memory"
    STORAGE_BACKEND: str = "sqlite"
    DATABASE_PATH: str = "data/bingebreaker.db"
    DATA_DIR: str = "data/store"

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # "Today" is computed in this timezone
    TIMEZONE: str = "Asia/Jerusalem"

    # Nightly motivation push (hour of day, local TIMEZONE)
    MOTIVATION_HOUR: int = 20

    # Prior turns sent to the coach with every message
    COACH_HISTORY_WINDOW: int = 10

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("MOTIVATION_HOUR", "COACH_HISTORY_WINDOW", mode="before")
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")
    llm_api_key = os.getenv("LLM_API_KEY", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    if not llm_api_key or llm_api_key.startswith("your-"):
        print("ERROR: LLM_API_KEY is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        LLM_PROVIDER=os.getenv("LLM_PROVIDER", "gemini"),
        LLM_MODEL=os.getenv("LLM_MODEL", ""),
        LLM_API_KEY=llm_api_key,
        STORAGE_BACKEND=os.getenv("STORAGE_BACKEND", "sqlite"),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/bingebreaker.db"),
        DATA_DIR=os.getenv("DATA_DIR", "data/store"),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        TIMEZONE=os.getenv("TIMEZONE", "Asia/Jerusalem"),
        MOTIVATION_HOUR=os.getenv("MOTIVATION_HOUR", "20"),
        COACH_HISTORY_WINDOW=os.getenv("COACH_HISTORY_WINDOW", "10"),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
