"""
Fixed window rate limiting for login and webhook endpoints

Counters are shared through Redis (INCR + EXPIRE) when it is reachable. While
Redis is down each process counts on its own, so limits stay enforced per worker.
"""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional

import redis
from fastapi import HTTPException, Request

from .config import RATE_LIMIT_ENABLED
from .redis_client import get_optional_redis_client

logger = logging.getLogger(__name__)


@dataclass
class WindowState:
    allowed: bool
    count: int
    retry_after: int


class FixedWindowLimiter:
    """Allows `limit` hits per key in each `window_seconds` window"""

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        client_factory: Callable[[], Optional[redis.Redis]] = get_optional_redis_client,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.client_factory = client_factory
        # {key: [count, window_end]}
        self._windows: dict[str, list] = {}
        self._lock = Lock()

    def _hit_redis(self, client: redis.Redis, key: str) -> WindowState:
        count = client.incr(key)
        ttl = client.ttl(key)
        # -1: counter exists without expiry (first hit, or an expire that never landed)
        if ttl < 0:
            client.expire(key, self.window_seconds)
            ttl = self.window_seconds
        return WindowState(allowed=count <= self.limit, count=count, retry_after=int(ttl))

    def _hit_memory(self, key: str, now: float) -> WindowState:
        with self._lock:
            for stale in [k for k, (_, end) in self._windows.items() if end <= now]:
                del self._windows[stale]

            window = self._windows.setdefault(key, [0, now + self.window_seconds])
            window[0] += 1
            count, window_end = window
        return WindowState(
            allowed=count <= self.limit, count=count, retry_after=max(int(window_end - now), 0)
        )

    def hit(self, key: str, now: Optional[float] = None) -> WindowState:
        """Count one request for `key` and report whether it is within the limit"""
        client = self.client_factory()
        if client is not None:
            try:
                return self._hit_redis(client, key)
            except redis.RedisError as e:
                logger.warning(f"⚠️ Redis rate limit failed for {key}, counting in memory: {e}")
        return self._hit_memory(key, time.time() if now is None else now)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str, use_ip: bool = True):
    """
    FastAPI dependency enforcing a fixed window limit, per client IP or global.

    Example:
        rate_limit_login = create_rate_limiter(limit=10, window_seconds=60, key_prefix="login")

        @router.post("/login")
        async def login(data: LoginRequest, _: None = Depends(rate_limit_login)):
            ...
    """
    limiter = FixedWindowLimiter(limit, window_seconds)

    async def rate_limiter(request: Request):
        if not RATE_LIMIT_ENABLED:
            return

        key = f"rate_limit:{key_prefix}:{client_ip(request) if use_ip else 'global'}"
        state = limiter.hit(key)
        if not state.allowed:
            logger.warning(f"🚫 Rate limit exceeded for {key}: {state.count}/{limit}")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": state.retry_after,
                },
                headers={"Retry-After": str(state.retry_after)},
            )

    rate_limiter.limiter = limiter
    return rate_limiter
