"""Per-client throttling of the account endpoints.

Every scope (``auth:register``, ``auth:login``) is counted in fixed windows
per client address, with the limit and window read from settings. Counters
live in Redis when it is configured and in process memory otherwise; a Redis
outage switches counting to memory instead of failing the request.
"""

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import redis

from garage_api.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0


class WindowCounter(ABC):
    @abstractmethod
    def increment(self, key: str, window_seconds: int) -> tuple[int, int]:
        """Count one hit; return (hits in the current window, seconds until it resets)."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError


class MemoryWindowCounter(WindowCounter):
    max_tracked_keys = 10_000

    def __init__(self) -> None:
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def increment(self, key: str, window_seconds: int) -> tuple[int, int]:
        now = time.monotonic()
        with self._lock:
            started, hits = self._windows.get(key, (now, 0))
            if now - started >= window_seconds:
                started, hits = now, 0
            hits += 1
            self._windows[key] = (started, hits)
            if len(self._windows) > self.max_tracked_keys:
                self._drop_expired(now, window_seconds)
            return hits, max(1, math.ceil(started + window_seconds - now))

    def _drop_expired(self, now: float, window_seconds: int) -> None:
        expired = [key for key, (started, _) in self._windows.items() if now - started >= window_seconds]
        for key in expired:
            del self._windows[key]

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


class RedisWindowCounter(WindowCounter):
    def __init__(self, client: redis.Redis, namespace: str = "garage:ratelimit") -> None:
        self._client = client
        self._namespace = namespace

    def increment(self, key: str, window_seconds: int) -> tuple[int, int]:
        redis_key = f"{self._namespace}:{key}"
        pipe = self._client.pipeline()
        pipe.set(redis_key, 0, ex=window_seconds, nx=True)
        pipe.incr(redis_key)
        pipe.ttl(redis_key)
        _, hits, ttl = pipe.execute()
        return int(hits), ttl if ttl > 0 else window_seconds

    def clear(self) -> None:
        for redis_key in self._client.scan_iter(match=f"{self._namespace}:*"):
            self._client.delete(redis_key)


class RateLimiter:
    def __init__(self, counter: WindowCounter, fallback: WindowCounter | None = None) -> None:
        self._counter = counter
        self._fallback = fallback

    def hit(self, scope: str, client_id: str) -> RateLimitDecision:
        limit, window_seconds = settings.rate_limit_for(scope)
        key = f"{scope}:{client_id}"
        try:
            hits, resets_in = self._counter.increment(key, window_seconds)
        except redis.RedisError:
            if self._fallback is None:
                raise
            logger.warning("rate_limiter_fallback scope=%s", scope)
            hits, resets_in = self._fallback.increment(key, window_seconds)

        if hits > limit:
            return RateLimitDecision(allowed=False, limit=limit, remaining=0, retry_after=resets_in)
        return RateLimitDecision(allowed=True, limit=limit, remaining=limit - hits)

    def reset(self) -> None:
        try:
            self._counter.clear()
        except redis.RedisError:
            logger.warning("rate_limiter_reset_failed backend=redis")
        if self._fallback is not None:
            self._fallback.clear()


def _build_rate_limiter() -> RateLimiter:
    if settings.rate_limit_backend.strip().lower() != "redis":
        return RateLimiter(MemoryWindowCounter())
    client = redis.Redis.from_url(
        settings.rate_limit_redis_url,
        socket_connect_timeout=0.2,
        socket_timeout=0.2,
    )
    return RateLimiter(RedisWindowCounter(client), fallback=MemoryWindowCounter())


rate_limiter = _build_rate_limiter()
