"""Models package exports."""

from weather_proxy.models.outcome import OutcomeKind, UpstreamResult
from weather_proxy.models.response import EnvResponse, ErrorResponse, HealthResponse
from weather_proxy.models.weather import (
    ConditionInfo,
    CurrentConditions,
    LocationInfo,
    WeatherResponse,
    WeatherSnapshot,
)

__all__ = [
    "ConditionInfo",
    "CurrentConditions",
    "EnvResponse",
    "ErrorResponse",
    "HealthResponse",
    "LocationInfo",
    "OutcomeKind",
    "UpstreamResult",
    "WeatherResponse",
    "WeatherSnapshot",
]
