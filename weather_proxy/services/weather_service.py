"""Weather service for WeatherAPI.com current-conditions integration."""

import asyncio
import time
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from weather_proxy.config import Settings, get_settings
from weather_proxy.exceptions import ConfigurationError
from weather_proxy.models.outcome import UpstreamResult
from weather_proxy.models.weather import WeatherSnapshot

logger = structlog.get_logger(__name__)

# WeatherAPI answers 400 for queries it cannot resolve to a location
LOCATION_NOT_FOUND_STATUS = 400

PREVIEW_LENGTH = 200


class WeatherService:
    """Fetches current conditions from the upstream provider.

    Every call is a single attempt bounded by weather_api_timeout. Transport
    and protocol failures are returned as an UpstreamResult, never raised.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.weather_api_timeout),
                headers={"User-Agent": self.settings.weather_api_user_agent},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _params(self, location: str) -> dict:
        return {"key": self.settings.weather_api_key, "q": location, "aqi": "no"}

    async def _get(self, location: str) -> httpx.Response:
        """Send one GET and read the whole body within the deadline.

        Raises:
            TimeoutError: If the deadline expires (request is cancelled)
            httpx.HTTPError: On transport failures
        """
        client = await self._get_client()
        async with asyncio.timeout(self.settings.weather_api_timeout):
            return await client.get(
                self.settings.weather_api_url, params=self._params(location)
            )

    async def fetch_current(self, location: str) -> UpstreamResult:
        """Get current weather for a sanitized location.

        Args:
            location: Location that already passed validation

        Returns:
            UpstreamResult classifying the call

        Raises:
            ConfigurationError: If no API key is configured
        """
        if not self.settings.weather_api_key:
            raise ConfigurationError(
                "weather_api_key",
                "Weather service is not properly configured - API key missing",
            )

        # Guards direct callers; requests from the handler are already validated
        if not location or not location.strip():
            return UpstreamResult.invalid_input("empty")

        start_time = time.perf_counter()
        logger.info(
            "weather_upstream_request",
            url=self.settings.weather_api_url,
            location=location,
        )

        try:
            response = await self._get(location)
        except (TimeoutError, httpx.TimeoutException):
            logger.warning(
                "weather_upstream_timeout",
                location=location,
                timeout_seconds=self.settings.weather_api_timeout,
            )
            return UpstreamResult.timeout()
        except httpx.DecodingError as e:
            logger.error(
                "weather_parse_error",
                location=location,
                error=str(e),
                error_type=type(e).__name__,
            )
            return UpstreamResult.malformed()
        except httpx.TransportError as e:
            logger.error(
                "weather_upstream_unavailable",
                location=location,
                error=str(e),
                error_type=type(e).__name__,
            )
            return UpstreamResult.unavailable()

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        result = self._classify(response, location)
        logger.info(
            "weather_upstream_response",
            location=location,
            status_code=response.status_code,
            response_length=len(response.content),
            outcome=result.kind.value,
            latency_ms=latency_ms,
        )
        return result

    def _classify(self, response: httpx.Response, location: str) -> UpstreamResult:
        """Map a complete upstream response onto an outcome."""
        status_code = response.status_code

        if not response.is_success:
            if status_code == LOCATION_NOT_FOUND_STATUS:
                return UpstreamResult.not_found()
            if status_code == 401:
                logger.error("weather_api_auth_error", status_code=status_code)
            elif status_code == 403:
                logger.error("weather_api_quota_exceeded", status_code=status_code)
            return UpstreamResult.upstream_error(status_code)

        try:
            data: Any = response.json()
        except ValueError as e:
            logger.error(
                "weather_parse_error",
                error=str(e),
                response_preview=response.text[:100],
            )
            return UpstreamResult.malformed()

        if not isinstance(data, dict):
            logger.error("weather_parse_error", error="body is not an object")
            return UpstreamResult.malformed()

        error = data.get("error")
        # An empty error object still marks an unresolved location
        if isinstance(error, dict) or error:
            reason = error.get("message") if isinstance(error, dict) else str(error)
            logger.info("weather_location_not_found", location=location, reason=reason)
            return UpstreamResult.not_found(reason)

        if not data.get("location") or not data.get("current"):
            logger.error("weather_invalid_structure", keys=sorted(data.keys()))
            return UpstreamResult.malformed()

        try:
            snapshot = WeatherSnapshot.from_upstream(data)
        except (ValidationError, TypeError, ValueError) as e:
            logger.error(
                "weather_parse_error",
                error=str(e),
                error_type=type(e).__name__,
            )
            return UpstreamResult.malformed()

        return UpstreamResult.ok(snapshot)

    async def smoke_test(self) -> dict:
        """Call the provider for the fixed test location and report raw results.

        Returns:
            Dict with status, HTTP status and a short body preview
        """
        if not self.settings.weather_api_key:
            return {
                "status": "error",
                "message": "API key not configured",
                "hasApiKey": False,
            }

        location = self.settings.test_location
        logger.info("weather_smoke_test", location=location)

        try:
            response = await self._get(location)
        except (TimeoutError, httpx.HTTPError) as e:
            logger.warning(
                "weather_smoke_test_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return {
                "status": "error",
                "message": f"Unable to reach weather service ({type(e).__name__})",
                "hasApiKey": True,
            }

        body = response.text
        return {
            "status": "success" if response.is_success else "error",
            "httpStatus": response.status_code,
            "hasApiKey": True,
            "apiKeyLength": len(self.settings.weather_api_key),
            "responseLength": len(body),
            "responsePreview": body[:PREVIEW_LENGTH],
        }
