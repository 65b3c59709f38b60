# app/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    APP_NAME: str = "Transit Reservations"

    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./transit.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Ephemeral credentials ─────────────────────────────────────────────
    RESET_TOKEN_VALIDITY_MINUTES: int = 15
    RESET_TOKEN_BYTES: int = 16                  # 128-bit tokens
    VERIFICATION_CODE_LENGTH: int = 6

    # ── Scheduling ────────────────────────────────────────────────────────
    # 0 = single maintenance instant (midnight of next_maintenance_date)
    MAINTENANCE_BLACKOUT_HOURS: int = 0

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
