"""Pytest configuration and fixtures."""

import copy
import os
from typing import Callable, Generator

import httpx
import pytest

# Set test environment variables before importing app
os.environ.setdefault("WEATHER_API_KEY", "test-weather-key")
os.environ.setdefault("STATIC_DIR", "/nonexistent-static-dir")
os.environ.setdefault("ENVIRONMENT", "production")

from weather_proxy.config import Settings, get_settings
from weather_proxy.services.rate_limiter import InMemoryRateLimitStore, RateLimiter
from weather_proxy.services.weather_handler import WeatherRequestHandler
from weather_proxy.services.weather_service import WeatherService

UPSTREAM_URL = "https://api.weatherapi.com/v1/current.json"

LONDON_PAYLOAD = {
    "location": {
        "name": "London",
        "region": "City of London, Greater London",
        "country": "United Kingdom",
        "lat": 51.52,
        "lon": -0.11,
        "tz_id": "Europe/London",
        "localtime_epoch": 1729245600,
        "localtime": "2026-10-18 11:00",
    },
    "current": {
        "last_updated_epoch": 1729245300,
        "last_updated": "2026-10-18 10:55",
        "temp_c": 14.2,
        "temp_f": 57.6,
        "is_day": 1,
        "condition": {
            "text": "Partly cloudy",
            "icon": "//cdn.weatherapi.com/weather/64x64/day/116.png",
            "code": 1003,
        },
        "wind_mph": 9.4,
        "wind_kph": 15.1,
        "wind_degree": 230,
        "wind_dir": "SW",
        "pressure_mb": 1012.0,
        "pressure_in": 29.88,
        "precip_mm": 0.1,
        "precip_in": 0.0,
        "humidity": 77,
        "cloud": 50,
        "feelslike_c": 12.9,
        "feelslike_f": 55.2,
        "vis_km": 10.0,
        "vis_miles": 6.0,
        "uv": 3.0,
        "gust_mph": 14.3,
        "gust_kph": 23.0,
    },
}


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def london_payload() -> dict:
    """Full WeatherAPI.com current.json body, including undocumented fields."""
    return copy.deepcopy(LONDON_PAYLOAD)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a configured key and short timeouts."""
    return Settings(
        weather_api_key="test-weather-key",
        weather_api_url=UPSTREAM_URL,
        weather_api_timeout=0.5,
        rate_limit_requests=100,
        rate_limit_window_seconds=3600,
        static_dir="/nonexistent-static-dir",
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_weather_service(
    test_settings: Settings,
) -> Callable[..., WeatherService]:
    """Build a WeatherService whose upstream is an httpx.MockTransport."""

    def _make(handler, settings: Settings | None = None) -> WeatherService:
        return WeatherService(
            settings or test_settings, transport=httpx.MockTransport(handler)
        )

    return _make


@pytest.fixture
def json_upstream(london_payload: dict):
    """Upstream handler that always answers 200 with the London payload."""

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=london_payload)

    return _handler


@pytest.fixture
def make_handler(
    make_weather_service, fake_clock: FakeClock
) -> Callable[..., WeatherRequestHandler]:
    """Build a WeatherRequestHandler with an in-memory limiter on a fake clock."""

    def _make(upstream, limit: int = 100, window_seconds: int = 3600):
        limiter = RateLimiter(
            InMemoryRateLimitStore(),
            limit=limit,
            window_seconds=window_seconds,
            clock=fake_clock,
        )
        return WeatherRequestHandler(limiter, make_weather_service(upstream))

    return _make
