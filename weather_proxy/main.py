"""FastAPI application initialization."""

import os
from contextlib import asynccontextmanager
from http import HTTPStatus

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from weather_proxy.api.middleware import CorrelationIdMiddleware
from weather_proxy.api.routes import router
from weather_proxy.config import get_settings
from weather_proxy.models.response import ErrorResponse
from weather_proxy.services.logging_service import (
    configure_logging,
    get_logger,
    mask_secret,
)
from weather_proxy.services.rate_limiter import RateLimiter
from weather_proxy.services.weather_handler import WeatherRequestHandler
from weather_proxy.services.weather_service import WeatherService


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    if settings.api_key_configured:
        logger.info(
            "weather_api_configured",
            url=settings.weather_api_url,
            key_length=len(settings.weather_api_key),
            key_preview=mask_secret(settings.weather_api_key),
        )
    else:
        logger.warning(
            "weather_api_key_missing",
            note="Set WEATHER_API_KEY; /weather requests will fail with 500 until configured",
        )

    weather_service = WeatherService(settings)
    rate_limiter = RateLimiter.from_settings(settings)
    rate_limiter.start()

    app.state.weather_service = weather_service
    app.state.rate_limiter = rate_limiter
    app.state.weather_handler = WeatherRequestHandler(rate_limiter, weather_service)

    logger.info(
        "application_started",
        environment=settings.environment,
        log_level=settings.log_level,
        rate_limit_requests=settings.rate_limit_requests,
        rate_limit_window_seconds=settings.rate_limit_window_seconds,
        rate_limit_backend=settings.rate_limit_backend,
        trust_forwarded_header=settings.trust_forwarded_header,
    )

    yield

    # Shutdown
    app.state.weather_handler = None
    await rate_limiter.stop()
    await weather_service.close()

    logger.info("application_shutdown")


app = FastAPI(
    title="Weather Proxy API",
    description="Rate-limited proxy for current weather conditions by location",
    version="1.0.0",
    lifespan=lifespan,
)


def _error_body(error: str, message: str, **extra) -> dict:
    return ErrorResponse(error=error, message=message, **extra).model_dump(
        exclude_none=True
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle query parameter validation errors with a stable error body."""
    logger = structlog.get_logger()

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}"
    else:
        detail = "Request validation failed"

    logger.warning("validation_error", detail=detail)

    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request", detail),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render HTTP errors (including unknown paths) as {error, message}."""
    if exc.status_code == 404:
        structlog.get_logger().info("resource_not_found", path=request.url.path)
        return JSONResponse(
            status_code=404,
            content=_error_body(
                "Not found",
                "The requested resource was not found",
                url=request.url.path,
            ),
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(HTTPStatus(exc.status_code).phrase, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert any unhandled fault into a generic 500."""
    settings = get_settings()
    structlog.get_logger().error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    details = str(exc) if settings.is_development else None
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "Internal server error",
            "Something went wrong on our end",
            details=details,
        ),
    )


# CORS middleware for browser clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Correlation ID middleware for request tracking and observability
app.add_middleware(CorrelationIdMiddleware)

# Include API routes
app.include_router(router)


def mount_frontend(app: FastAPI, static_dir: str) -> bool:
    """Serve the front-end asset tree at / when the directory exists.

    Must be called after the API routes are included so those take precedence.
    """
    if not os.path.isdir(static_dir):
        return False
    app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    return True


mount_frontend(app, get_settings().static_dir)
