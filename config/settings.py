"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from THREADCACHE_* environment variables or .env."""

    # Gmail REST configuration
    gmail_api_base_url: str = "https://gmail.googleapis.com/gmail/v1"
    gmail_user_id: str = "me"
    gmail_access_token: Optional[str] = None
    request_timeout_seconds: float = 30.0

    # Upper bound on concurrent upstream requests
    max_concurrent_requests: int = 10

    # Thread cache
    thread_cache_capacity: int = 100

    # Summary tier (list views)
    summary_max_age_seconds: Optional[float] = None
    summary_early_refresh_seconds: Optional[float] = None
    summary_stale_grace_seconds: Optional[float] = None

    # Complete tier (full threads)
    complete_max_age_seconds: Optional[float] = None
    complete_early_refresh_seconds: Optional[float] = None
    complete_stale_grace_seconds: Optional[float] = None

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "THREADCACHE_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
