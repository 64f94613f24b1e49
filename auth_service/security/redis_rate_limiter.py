"""Redis-backed limiter shared by every replica of the service."""

from __future__ import annotations

import time

from redis import Redis


class RedisFixedWindowRateLimiter:
    """Counts hits per key in fixed windows using ``INCR``; each bucket key expires after one window."""

    def __init__(
        self,
        client: Redis,
        *,
        max_requests: int,
        window_seconds: int,
        key_prefix: str = "auth:rate",
    ) -> None:
        self._client = client
        self._max_requests = max_requests
        self._window = window_seconds
        self._key_prefix = key_prefix

    def _window_key(self, key: str, now: float) -> str:
        bucket = int(now // self._window)
        return f"{self._key_prefix}:{key}:{bucket}"

    def allow(self, key: str) -> bool:
        """Return ``True`` while ``key`` has hits left in the current window."""
        redis_key = self._window_key(key, time.time())
        pipe = self._client.pipeline()
        pipe.incr(redis_key)
        pipe.expire(redis_key, self._window)
        count, _ = pipe.execute()
        return int(count) <= self._max_requests
