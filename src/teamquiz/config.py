"""Application settings via pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TEAMS = ["Pour Decisions", "Sip Happens", "Grape Minds", "Kensington Corkers"]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables with TQ_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="TQ_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///./teamquiz.db"
    redis_url: str = ""
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60
    log_level: str = "INFO"
    log_format: str = "json"

    # --- JWT ---
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24
    jwt_issuer: str = "teamquiz"

    # --- Quiz calendar ---
    timezone: str = "Europe/London"
    upcoming_weeks: int = 4

    # --- Scoring ---
    teams: list[str] = DEFAULT_TEAMS
    points_per_correct: int = 10
    answers_per_quiz: int = 3

    # --- Client caching ---
    extended_caching: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
