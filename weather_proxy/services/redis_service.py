"""Redis connection shared by the distributed rate-limit store."""

from typing import Optional

import redis.asyncio as redis
import structlog

logger = structlog.get_logger(__name__)

# Global Redis client
_redis_client: Optional[redis.Redis] = None


async def get_redis(url: str) -> Optional[redis.Redis]:
    """Get or create the Redis client.

    Returns:
        Redis client or None if connection fails (graceful degradation)
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    try:
        _redis_client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
        )
        # Test connection
        await _redis_client.ping()
        logger.info("redis_connected", url=url.split("@")[-1])
        return _redis_client
    except Exception as e:
        logger.warning("redis_connection_failed", error=str(e))
        _redis_client = None
        return None


async def close_redis() -> None:
    """Close the Redis connection."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None
        logger.info("redis_connection_closed")
