"""Orchestration of a single GET /weather request.

Start -> rate check -> validate -> upstream call -> respond, with an early
response at the first failing step.
"""

import time
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from fastapi.responses import JSONResponse

from weather_proxy.exceptions import ConfigurationError
from weather_proxy.models.outcome import OutcomeKind, UpstreamResult
from weather_proxy.models.response import ErrorResponse
from weather_proxy.models.weather import WeatherResponse
from weather_proxy.services.rate_limiter import RateLimitDecision, RateLimiter
from weather_proxy.services.validation import validate_location
from weather_proxy.services.weather_service import WeatherService

logger = structlog.get_logger(__name__)

_LOCATION_NOT_FOUND = (
    404,
    "Location not found",
    "Could not find weather data for the specified location. "
    "Please check the spelling and try again.",
)

# status, error, message per non-success outcome
_OUTCOME_ERRORS: dict[OutcomeKind, tuple[int, str, str]] = {
    OutcomeKind.INVALID_INPUT: _LOCATION_NOT_FOUND,
    OutcomeKind.NOT_FOUND: _LOCATION_NOT_FOUND,
    OutcomeKind.UPSTREAM_UNAVAILABLE: (
        503,
        "Service unavailable",
        "Unable to connect to weather service. Please try again later.",
    ),
    OutcomeKind.TIMEOUT: (
        504,
        "Request timeout",
        "Weather service request timed out. Please try again.",
    ),
    OutcomeKind.MALFORMED_RESPONSE: (
        502,
        "Invalid response from weather service",
        "The weather service returned data that could not be read. Please try again later.",
    ),
    OutcomeKind.UPSTREAM_ERROR: (
        502,
        "Weather API error",
        "The weather service returned an error. Please try again later.",
    ),
}


def _error_response(
    status_code: int,
    error: str,
    message: str,
    headers: Optional[dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, **extra)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def _rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    headers = {"X-RateLimit-Limit": str(decision.limit)}
    if decision.remaining >= 0:
        headers["X-RateLimit-Remaining"] = str(decision.remaining)
    return headers


def error_status_for(result: UpstreamResult) -> int:
    """HTTP status returned to the client for a failed upstream outcome."""
    status_code = _OUTCOME_ERRORS[result.kind][0]
    if result.kind == OutcomeKind.UPSTREAM_ERROR and result.status_code is not None:
        # Forward real upstream errors; anything below 400 is an anomaly
        if result.status_code >= 400:
            status_code = result.status_code
    return status_code


class WeatherRequestHandler:
    """Runs the rate limiter, validator and weather client for one request."""

    def __init__(self, rate_limiter: RateLimiter, weather_service: WeatherService):
        self.rate_limiter = rate_limiter
        self.weather_service = weather_service

    async def handle(self, raw_location: Any, client_key: str) -> JSONResponse:
        """Produce the HTTP response for GET /weather.

        Args:
            raw_location: Untrusted location query value (may be None)
            client_key: Caller identity used for rate limiting

        Returns:
            JSONResponse with the weather body or an {error, message} body
        """
        start_time = time.perf_counter()

        decision = await self.rate_limiter.admit(client_key)
        headers = _rate_limit_headers(decision)
        if not decision.allowed:
            headers["Retry-After"] = str(decision.retry_after(self.rate_limiter.clock()))
            return _error_response(
                429,
                "Rate limit exceeded",
                "Too many requests. Please try again later.",
                headers=headers,
                resetTime=decision.reset_time.isoformat(),
            )

        validation = validate_location(raw_location)
        if not validation.valid:
            logger.info("weather_validation_failed", reason=validation.reason)
            return _error_response(
                400, "Invalid location", validation.message, headers=headers
            )

        try:
            result = await self.weather_service.fetch_current(validation.sanitized)
        except ConfigurationError as e:
            logger.error("weather_configuration_error", setting=e.setting)
            return _error_response(500, "Service unavailable", str(e), headers=headers)

        latency_ms = int((time.perf_counter() - start_time) * 1000)

        if not result.success:
            status_code = error_status_for(result)
            _, error, message = _OUTCOME_ERRORS[result.kind]
            logger.warning(
                "weather_request_failed",
                location=validation.sanitized,
                outcome=result.kind.value,
                upstream_status=result.status_code,
                status_code=status_code,
                latency_ms=latency_ms,
            )
            return _error_response(status_code, error, message, headers=headers)

        snapshot = result.snapshot
        body = WeatherResponse(
            location=snapshot.location,
            current=snapshot.current,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            "weather_request_success",
            location=validation.sanitized,
            resolved_name=snapshot.location.name,
            country=snapshot.location.country,
            latency_ms=latency_ms,
        )
        return JSONResponse(content=body.model_dump(), headers=headers)
