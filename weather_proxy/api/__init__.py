"""API package exports."""

from weather_proxy.api.middleware import CorrelationIdMiddleware
from weather_proxy.api.routes import router

__all__ = ["router", "CorrelationIdMiddleware"]
