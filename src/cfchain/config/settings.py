"""
Application settings using Pydantic.

Provides environment-based configuration loading with CFCHAIN_ prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings

from cfchain.orchestration.backoff import BackoffSchedule


class Settings(BaseSettings):
    """Application settings."""

    # Control-plane API
    api_url: str = "https://api.bosh-lite.com"
    token: str | None = None

    # HTTP client settings
    http_timeout: float = 30.0
    results_per_page: int = 50

    # Poll loops (seconds)
    poll_min_delay: float = 1.0
    poll_max_delay: float = 15.0
    poll_timeout: float = 300.0
    job_timeout: float = 300.0
    workflow_timeout: float = 300.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "CFCHAIN_"

    def backoff_schedule(self, timeout: float | None = None) -> BackoffSchedule:
        """Build the poll schedule; ``timeout`` overrides ``poll_timeout``."""
        return BackoffSchedule(
            min_delay=self.poll_min_delay,
            max_delay=self.poll_max_delay,
            timeout=self.poll_timeout if timeout is None else timeout,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
