"""Run the weather proxy with uvicorn: python -m weather_proxy."""

import sys

import uvicorn

from weather_proxy.config import get_settings
from weather_proxy.services.logging_service import configure_logging, get_logger


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("server")

    logger.info("server_starting", host=settings.host, port=settings.port)

    try:
        # uvicorn stops accepting connections on SIGINT/SIGTERM and waits for
        # in-flight requests up to the graceful shutdown timeout
        uvicorn.run(
            "weather_proxy.main:app",
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            access_log=False,
            timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
        )
    except Exception as e:
        logger.critical("server_crashed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    main()
