"""API route definitions for weather and diagnostic endpoints."""

import time
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from weather_proxy.api.dependencies import (
    get_client_key,
    get_weather_handler,
    get_weather_service,
)
from weather_proxy.config import Settings, get_settings
from weather_proxy.models.response import EnvResponse, HealthResponse
from weather_proxy.services.weather_handler import WeatherRequestHandler
from weather_proxy.services.weather_service import WeatherService

logger = structlog.get_logger(__name__)

router = APIRouter()

_started_at = time.monotonic()


@router.get("/weather")
async def get_weather(
    location: Optional[str] = None,
    client_key: str = Depends(get_client_key),
    handler: WeatherRequestHandler = Depends(get_weather_handler),
) -> JSONResponse:
    """Current weather for a location.

    Args:
        location: Free-text location query (city, region, postcode, ...)

    Returns:
        200 with {location, current, timestamp}, or an {error, message} body
        with 400/404/429/500/502/503/504
    """
    logger.info("weather_request_received", client_key=client_key)
    return await handler.handle(location, client_key)


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Health check endpoint.

    Returns:
        Status, ISO8601 timestamp, uptime and configuration presence flags
    """
    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.monotonic() - _started_at, 3),
        api_key_configured=settings.api_key_configured,
        environment=settings.environment,
    )


@router.get("/test")
async def upstream_smoke_test(
    service: WeatherService = Depends(get_weather_service),
) -> dict:
    """Call the provider with a fixed location to verify the API key."""
    return await service.smoke_test()


@router.get("/env")
async def environment_flags(settings: Settings = Depends(get_settings)) -> EnvResponse:
    """Report non-secret configuration flags."""
    return EnvResponse(
        environment=settings.environment,
        api_key_configured=settings.api_key_configured,
        api_key_length=len(settings.weather_api_key),
        rate_limit_requests=settings.rate_limit_requests,
        rate_limit_window_seconds=settings.rate_limit_window_seconds,
        rate_limit_backend=settings.rate_limit_backend,
        trust_forwarded_header=settings.trust_forwarded_header,
        weather_api_url=settings.weather_api_url,
    )
