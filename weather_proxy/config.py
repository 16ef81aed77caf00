"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream weather provider
    weather_api_key: str = ""  # Required for /weather
    weather_api_url: str = "https://api.weatherapi.com/v1/current.json"
    weather_api_timeout: float = 10.0  # Hard limit for the whole upstream call
    weather_api_user_agent: str = "Weather-Terminal/1.0"

    # Rate limiting
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 3600
    rate_limit_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"

    # Only enable when running behind a proxy that sets X-Forwarded-For
    trust_forwarded_header: bool = False

    # Runtime
    environment: str = "production"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    shutdown_timeout_seconds: int = 15
    static_dir: str = "public"

    # Diagnostics
    test_location: str = "London"

    @property
    def is_development(self) -> bool:
        """Whether internal error details may be returned to clients."""
        return self.environment.lower() == "development"

    @property
    def api_key_configured(self) -> bool:
        return bool(self.weather_api_key)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
