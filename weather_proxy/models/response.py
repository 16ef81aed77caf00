"""Response models for error bodies and diagnostics."""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Stable error body returned for every 4xx/5xx response.

    Attributes:
        error: Short error category (e.g., "Invalid location")
        message: User-safe explanation with no technical details
        details: Exception text, only set in development mode
        resetTime: When a rate-limited client may retry (ISO-8601)
        url: Requested path, only set for unknown routes
    """

    error: str
    message: str
    details: Optional[str] = None
    resetTime: Optional[str] = None
    url: Optional[str] = None


class HealthResponse(BaseModel):
    """Process status for GET /health."""

    status: str = "OK"
    timestamp: str
    uptime: float = Field(..., ge=0, description="Seconds since startup")
    api_key_configured: bool
    environment: str


class EnvResponse(BaseModel):
    """Non-secret configuration flags for GET /env."""

    environment: str
    api_key_configured: bool
    api_key_length: int
    rate_limit_requests: int
    rate_limit_window_seconds: int
    rate_limit_backend: str
    trust_forwarded_header: bool
    weather_api_url: str
