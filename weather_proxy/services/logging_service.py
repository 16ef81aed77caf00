"""Structured logging configuration with redaction support."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog

# Any key containing one of these is redacted
SENSITIVE_SUBSTRINGS = {
    "api_key",
    "authorization",
    "secret",
    "password",
}

# Keys redacted only on exact match ("key" is the upstream query parameter)
SENSITIVE_EXACT = {"key"}


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Redact sensitive information from log entries.

    Redacts:
    - api_key fields (including weather_api_key)
    - the bare "key" field
    - Authorization headers
    - Any field containing 'secret' or 'password'
    """
    for key in list(event_dict.keys()):
        key_lower = key.lower()
        if key_lower in SENSITIVE_EXACT or any(
            sensitive in key_lower for sensitive in SENSITIVE_SUBSTRINGS
        ):
            event_dict[key] = "REDACTED"

    return event_dict


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Short preview of a secret for startup diagnostics.

    Returns "None" when unset, otherwise the first characters followed by "...".
    """
    if not value:
        return "None"
    return f"{value[:visible]}..."


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog for JSON output with correlation ID support.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Configure standard library logging (uvicorn, httpx)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_sensitive,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Optional logger name for context

    Returns:
        Configured structlog logger
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger
