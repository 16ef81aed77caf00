"""Per-client rate limiting with pluggable window stores.

Each client key gets a fixed counting window: the first request opens the
window, later requests increment it until LIMIT is reached, and the first
request after the window's reset time starts a new one.

The in-memory store makes its decision without awaiting, so under the asyncio
scheduler a check-and-increment is never interleaved with another request.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, Field

from weather_proxy.config import Settings

logger = structlog.get_logger(__name__)

Clock = Callable[[], float]


class RateWindow(BaseModel):
    """Counting window for one client key."""

    count: int = Field(ge=0)
    reset_at: float  # Epoch seconds


class RateLimitDecision(BaseModel):
    """Outcome of admitting one request.

    Attributes:
        allowed: Whether the request may proceed
        limit: Configured requests per window
        remaining: Requests left in the window, -1 when unknown
        reset_at: Epoch seconds when the window resets
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    @property
    def reset_time(self) -> datetime:
        return datetime.fromtimestamp(self.reset_at, tz=timezone.utc)

    def retry_after(self, now: float) -> int:
        """Whole seconds until the window resets (at least 1)."""
        return max(1, int(self.reset_at - now + 0.999))


class RateLimitStore(ABC):
    """Storage for rate windows keyed by client."""

    @abstractmethod
    async def hit(
        self, key: str, limit: int, window_seconds: int, now: float
    ) -> RateLimitDecision:
        """Count one request for key and decide whether it is admitted."""

    async def sweep(self, now: float) -> int:
        """Drop expired windows. Returns the number removed."""
        return 0

    async def clear(self) -> None:
        """Forget all windows."""

    async def close(self) -> None:
        """Release any backing connection."""


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local window store. Lost on restart."""

    def __init__(self):
        self._windows: dict[str, RateWindow] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def get(self, key: str) -> Optional[RateWindow]:
        return self._windows.get(key)

    async def hit(
        self, key: str, limit: int, window_seconds: int, now: float
    ) -> RateLimitDecision:
        window = self._windows.get(key)

        if window is None or now > window.reset_at:
            window = RateWindow(count=1, reset_at=now + window_seconds)
            self._windows[key] = window
            return RateLimitDecision(
                allowed=True, limit=limit, remaining=limit - 1, reset_at=window.reset_at
            )

        if window.count >= limit:
            return RateLimitDecision(
                allowed=False, limit=limit, remaining=0, reset_at=window.reset_at
            )

        window.count += 1
        return RateLimitDecision(
            allowed=True,
            limit=limit,
            remaining=limit - window.count,
            reset_at=window.reset_at,
        )

    async def sweep(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    async def clear(self) -> None:
        self._windows.clear()


class RedisRateLimitStore(RateLimitStore):
    """Window store shared between processes through Redis.

    Windows expire through Redis key TTLs, so sweep() has nothing to do.
    When Redis is unreachable requests are allowed and a warning is logged.
    """

    def __init__(self, redis_url: str, key_prefix: str = "rate_limit"):
        self.redis_url = redis_url
        self.key_prefix = key_prefix

    async def hit(
        self, key: str, limit: int, window_seconds: int, now: float
    ) -> RateLimitDecision:
        from weather_proxy.services.redis_service import get_redis

        client = await get_redis(self.redis_url)
        if client is None:
            # Graceful degradation: allow if Redis unavailable
            return RateLimitDecision(
                allowed=True, limit=limit, remaining=-1, reset_at=now + window_seconds
            )

        redis_key = f"{self.key_prefix}:{key}"
        try:
            count = int(await client.incr(redis_key))
            if count == 1:
                await client.expire(redis_key, window_seconds)
                ttl = window_seconds
            else:
                ttl = int(await client.ttl(redis_key))
                if ttl < 0:
                    # Counter survived without an expiry; start a fresh window
                    await client.expire(redis_key, window_seconds)
                    ttl = window_seconds
        except Exception as e:
            logger.warning("redis_rate_limit_failed", error=str(e), client_key=key)
            return RateLimitDecision(
                allowed=True, limit=limit, remaining=-1, reset_at=now + window_seconds
            )

        reset_at = now + ttl
        if count > limit:
            return RateLimitDecision(
                allowed=False, limit=limit, remaining=0, reset_at=reset_at
            )
        return RateLimitDecision(
            allowed=True, limit=limit, remaining=limit - count, reset_at=reset_at
        )

    async def close(self) -> None:
        from weather_proxy.services.redis_service import close_redis

        await close_redis()


class RateLimiter:
    """Admits or denies requests per client key and sweeps expired windows."""

    def __init__(
        self,
        store: RateLimitStore,
        limit: int = 100,
        window_seconds: int = 3600,
        clock: Clock = time.time,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimiter":
        """Build a limiter with the store selected by rate_limit_backend."""
        if settings.rate_limit_backend == "redis":
            store: RateLimitStore = RedisRateLimitStore(settings.redis_url)
        else:
            store = InMemoryRateLimitStore()
        return cls(
            store,
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )

    async def admit(self, client_key: str) -> RateLimitDecision:
        """Count a request from client_key and decide whether it proceeds."""
        now = self.clock()
        decision = await self.store.hit(client_key, self.limit, self.window_seconds, now)
        if not decision.allowed:
            logger.warning(
                "rate_limit_exceeded",
                client_key=client_key,
                limit=self.limit,
                reset_time=decision.reset_time.isoformat(),
            )
        return decision

    async def sweep_once(self) -> int:
        removed = await self.store.sweep(self.clock())
        if removed:
            logger.debug("rate_limit_sweep", removed=removed)
        return removed

    def start(self):
        """Start the periodic sweep as an asyncio background task."""
        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info("rate_limit_sweep_started", interval_seconds=self.window_seconds)

    async def stop(self):
        """Stop the sweep task and release the store."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.store.close()
        logger.info("rate_limit_sweep_stopped")

    async def _sweep_loop(self):
        """Remove expired windows once per window duration."""
        while self._running:
            try:
                await asyncio.sleep(self.window_seconds)
            except asyncio.CancelledError:
                break

            try:
                await self.sweep_once()
            except Exception as e:
                logger.error("rate_limit_sweep_error", error=str(e))
