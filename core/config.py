"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
This ensures consistent configuration across the engine and its adapters.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database Configuration (reference SQL adapter only)
    DATABASE_URL: str = Field(default="sqlite:///./checkins.db")
    DB_ECHO: bool = Field(default=False)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # Date range defaults
    # Trailing window used when a caller omits from/to.
    DEFAULT_RANGE_DAYS: int = Field(default=30, ge=0)

    # Ranking
    TOP_RANK_THRESHOLD: int = Field(default=3, ge=1)
    LEADERBOARD_LIST_LIMIT: Optional[int] = Field(default=None, ge=1)

    # Notification fan-out
    # Upper bound on concurrent dispatch calls per ranking compute.
    NOTIFICATION_MAX_WORKERS: int = Field(default=8, ge=1, le=64)

    # Environment
    ENVIRONMENT: str = Field(default="development")


# Global settings instance
settings = Settings()
