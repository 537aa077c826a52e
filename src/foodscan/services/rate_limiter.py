"""Per-client request limiting for the scan endpoint.

Two backends share the ``hit`` coroutine: an in-process table (the default,
state is lost on restart) and a Redis counter for deployments running more
than one instance.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import redis.asyncio as redis_async

from ..config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    window_start: float
    count: int


class RateLimiter:
    """Common interface: ``await hit(client_id)`` returns True when the client is over the limit."""

    def __init__(self, max_requests: int = 10, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    async def hit(self, client_id: str) -> bool:
        raise NotImplementedError


class InMemoryRateLimiter(RateLimiter):
    """Best-effort limiter keyed by client identifier.

    A client's window starts at its first request and restarts at the first
    request after it elapses, so windows slide per client instead of lining
    up with the clock.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(max_requests, window_seconds)
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, client_id: str) -> Optional[RateLimitEntry]:
        return self._entries.get(client_id)

    def _purge_expired(self, now: float):
        # Only bounds memory; an expired entry would be reset on lookup anyway.
        stale = [key for key, entry in self._entries.items()
                 if now - entry.window_start > self.window_seconds]
        for key in stale:
            del self._entries[key]

    def is_limited(self, client_id: str) -> bool:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)

            entry = self._entries.get(client_id)
            if entry is None or now - entry.window_start >= self.window_seconds:
                self._entries[client_id] = RateLimitEntry(window_start=now, count=1)
                return False

            if entry.count >= self.max_requests:
                return True

            entry.count += 1
            return False

    async def hit(self, client_id: str) -> bool:
        return self.is_limited(client_id)


class RedisRateLimiter(RateLimiter):
    """Shared counter per client: INCR, with the key expiring one window after its first hit.

    INCR and EXPIRE NX go out in one MULTI block, so every hit re-arms a
    missing TTL. EXPIRE NX needs Redis 7.
    """

    KEY_PREFIX = "foodscan:ratelimit:"

    def __init__(self, client, max_requests: int = 10, window_seconds: int = 60):
        super().__init__(max_requests, window_seconds)
        self.client = client

    @classmethod
    def from_url(cls, url: str, max_requests: int = 10, window_seconds: int = 60) -> "RedisRateLimiter":
        client = redis_async.from_url(url, decode_responses=True)
        return cls(client, max_requests, window_seconds)

    async def hit(self, client_id: str) -> bool:
        key = f"{self.KEY_PREFIX}{client_id}"
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, self.window_seconds, nx=True)
                count, _ = await pipe.execute()
        except Exception as e:
            # Fail open while Redis is unavailable.
            logger.warning("Redis rate limit check failed for %s: %s. Allowing request.", client_id, e)
            return False
        return count > self.max_requests


def create_rate_limiter(settings: Settings) -> RateLimiter:
    """Build the limiter selected by RATE_LIMIT_BACKEND"""
    backend = settings.RATE_LIMIT_BACKEND.lower()
    if backend == "redis":
        logger.info("Using Redis rate limiter at %s", settings.REDIS_URL)
        return RedisRateLimiter.from_url(
            settings.REDIS_URL,
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        )
    if backend != "memory":
        logger.warning("Unknown RATE_LIMIT_BACKEND %r, falling back to in-memory limiter", backend)
    return InMemoryRateLimiter(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
