"""Application configuration loaded from environment."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from logdash.models import Environment


class Settings(BaseSettings):
    """logdash settings from LOGDASH_* env vars."""

    model_config = SettingsConfigDict(
        env_prefix="LOGDASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote log API (buckets, listings, content, search)
    api_base_url: str = "http://localhost:8080"
    # Applied by the HTTP client to every request
    request_timeout_seconds: float = 30.0

    # Seed values for a new session's filter selection; date defaults to today
    default_environment: Environment = Environment.DEV
    default_app_name: str = ""

    log_level: str = "INFO"


def get_settings() -> Settings:
    """Return loaded settings from environment (and .env if present)."""
    return Settings()
