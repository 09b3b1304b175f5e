from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Database - PostgreSQL in production, SQLite for development
    database_url: str = "sqlite:///./radar.db"
    database_pool_size: int = 20
    database_max_overflow: int = 40

    # Application
    app_name: str = "Radar"
    debug: bool = False
    log_level: str = "INFO"
    logs_dir: Path = Path("logs")

    # External services
    youtube_api_key: str | None = None
    anthropic_api_key: str | None = None
    summary_model: str = "anthropic:claude-haiku-4-5-20251001"

    # HTTP client
    http_timeout_seconds: float = 10.0
    user_agent: str = "Radar Intelligence Dashboard"

    # Fetch cycles
    rss_item_limit: int = 20
    polymarket_api_base: str = "https://gamma-api.polymarket.com"
    polymarket_event_limit: int = 50

    # Scheduler endpoint guard
    cron_secret: str | None = None

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("DATABASE_URL must be set")
        return v

    @field_validator("youtube_api_key", "anthropic_api_key", "cron_secret")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
