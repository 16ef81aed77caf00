"""Services package exports."""

from weather_proxy.services.logging_service import configure_logging, get_logger
from weather_proxy.services.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimitDecision,
    RateLimiter,
    RateLimitStore,
    RedisRateLimitStore,
)
from weather_proxy.services.validation import LocationValidation, validate_location
from weather_proxy.services.weather_handler import WeatherRequestHandler
from weather_proxy.services.weather_service import WeatherService

__all__ = [
    "InMemoryRateLimitStore",
    "LocationValidation",
    "RateLimitDecision",
    "RateLimitStore",
    "RateLimiter",
    "RedisRateLimitStore",
    "WeatherRequestHandler",
    "WeatherService",
    "configure_logging",
    "get_logger",
    "validate_location",
]
