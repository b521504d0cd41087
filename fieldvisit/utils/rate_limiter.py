"""
Rolling-window rate limiter.

Counters live in Redis when REDIS_URL is configured, otherwise in process
memory (single worker only).
"""
import threading
import time
import uuid
from collections import defaultdict, deque
from typing import Deque, Dict, Tuple

import redis

from fieldvisit.core.config import settings


class MemoryRateLimitStore:
    def __init__(self):
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._longest_window = 0
        self._last_sweep = 0.0

    def hit(self, key: str, limit: int, window: int, now: float) -> Tuple[bool, int]:
        """Record a request; returns (allowed, seconds until a slot frees up)."""
        with self._lock:
            self._longest_window = max(self._longest_window, window)
            if now - self._last_sweep >= self._longest_window:
                self._sweep(now)
            hits = self._hits[key]
            while hits and hits[0] <= now - window:
                hits.popleft()
            if len(hits) >= limit:
                return False, max(1, int(hits[0] + window - now) + 1)
            hits.append(now)
            return True, 0

    def _sweep(self, now: float) -> None:
        # Drop clients whose newest hit has aged out of every window.
        cutoff = now - self._longest_window
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._last_sweep = 0.0


class RedisRateLimitStore:
    def __init__(self, client: "redis.Redis"):
        self.client = client

    def hit(self, key: str, limit: int, window: int, now: float) -> Tuple[bool, int]:
        redis_key = f"ratelimit:{key}"
        pipe = self.client.pipeline()
        pipe.zremrangebyscore(redis_key, 0, now - window)
        pipe.zcard(redis_key)
        pipe.zrange(redis_key, 0, 0, withscores=True)
        _, count, oldest = pipe.execute()
        if count >= limit:
            oldest_score = oldest[0][1] if oldest else now
            return False, max(1, int(oldest_score + window - now) + 1)
        pipe = self.client.pipeline()
        pipe.zadd(redis_key, {f"{now}:{uuid.uuid4().hex}": now})
        pipe.expire(redis_key, window)
        pipe.execute()
        return True, 0

    def reset(self) -> None:
        for key in self.client.scan_iter("ratelimit:*"):
            self.client.delete(key)


class RateLimiter:
    def __init__(self, name: str, limit: int, window: int, store):
        self.name = name
        self.limit = limit
        self.window = window
        self.store = store

    def check(self, client_key: str) -> Tuple[bool, int]:
        return self.store.hit(f"{self.name}:{client_key}", self.limit, self.window, time.time())


def build_store():
    if settings.REDIS_URL:
        return RedisRateLimitStore(redis.from_url(settings.REDIS_URL, decode_responses=True))
    return MemoryRateLimitStore()


_store = build_store()

auth_limiter = RateLimiter("auth", settings.AUTH_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS, _store)
api_limiter = RateLimiter("api", settings.API_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS, _store)


def reset_limits() -> None:
    _store.reset()
