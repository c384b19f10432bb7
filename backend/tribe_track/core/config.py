"""
Application configuration.
All sensitive values loaded from environment variables.
"""
from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/tribe"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or console

    # Workout tracking
    DEFAULT_WEIGHT_KG: float = 65.0
    MAX_DURATION_MINUTES: int = 180
    # How many days back a workout may be logged
    BACKFILL_DAYS: int = 7
    WEEKLY_WINDOW_DAYS: int = 7
    MONTHLY_WINDOW_DAYS: int = 30
    LOGS_PAGE_SIZE: int = 20
    LOGS_MAX_PAGE_SIZE: int = 100

    # Client sync
    API_BASE_URL: str = "http://localhost:8000"
    SYNC_DB_URL: str = "sqlite+aiosqlite:///tribe_sync.db"
    # Per-request timeout in seconds; a timeout counts as a transient failure
    SYNC_REQUEST_TIMEOUT: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
