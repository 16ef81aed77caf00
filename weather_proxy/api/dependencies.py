"""FastAPI dependencies for caller identity and shared services."""

from fastapi import Depends, HTTPException, Request, status

from weather_proxy.config import Settings, get_settings
from weather_proxy.services.weather_handler import WeatherRequestHandler
from weather_proxy.services.weather_service import WeatherService

UNKNOWN_CLIENT = "unknown"


def get_client_key(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> str:
    """Identify the caller for rate limiting.

    X-Forwarded-For is only trusted when trust_forwarded_header is enabled,
    since any client can set it. Falls back to the peer address, then to a
    fixed sentinel.
    """
    if settings.trust_forwarded_header:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


def get_weather_handler(request: Request) -> WeatherRequestHandler:
    """Handler created during application startup.

    Raises:
        HTTPException 503: If the application has not finished starting
    """
    handler = getattr(request.app.state, "weather_handler", None)
    if handler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return handler


def get_weather_service(request: Request) -> WeatherService:
    """Weather client created during application startup."""
    service = getattr(request.app.state, "weather_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return service
