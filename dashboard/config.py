"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite:///./dashboard.db"
    database_timeout_seconds: int = 5

    # Location a user points their browser at; used to build email links
    site_url: str = "http://localhost:8085"

    # Email (SendGrid)
    sendgrid_api_key: str = ""
    email_from_address: str = "noreply@dashboard.local"
    email_from_name: str = "Automation Dashboard"
    email_timeout_seconds: float = 10.0

    # GitHub OAuth connect
    github_client_id: str = ""
    github_client_secret: str = ""
    github_timeout_seconds: float = 10.0

    # Background cleanup of stale tokens, sessions and OAuth states
    sweep_interval_seconds: int = 3600

    # Application
    log_level: str = "INFO"
    dev: bool = False

    # CORS
    allowed_origins: list[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_prefix="DASHBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Build the settings once per process."""
    return Settings()
