"""
Fixed-window limiter for OTP issuance, keyed by phone number.

The counter lives under ``rate:<phone>``.  Each attempt increments it and
arms the expiry in one MULTI/EXEC; ``PEXPIRE NX`` only sets a TTL on a
counter that has none, so the first attempt of a window fixes its end.
When Redis drops the key the next attempt opens a fresh window.  Windows
do not slide, so up to ``2 × limit`` requests can land close together
around a boundary.
"""

from __future__ import annotations

import logging
from datetime import timedelta

import redis.asyncio as redis

from app.config import REMOTE_CALL_TIMEOUT
from app.services.errors import StoreUnavailable
from app.services.remote import bounded

logger = logging.getLogger(__name__)

RATE_KEY_PREFIX = "rate:"


class RateLimiter:
    def __init__(
        self,
        client: redis.Redis,
        *,
        limit: int,
        window: timedelta,
        timeout: float = REMOTE_CALL_TIMEOUT,
    ) -> None:
        self._redis = client
        self._limit = limit
        self._window_ms = max(1, int(window.total_seconds() * 1000))
        self._timeout = timeout

    @staticmethod
    def key(phone: str) -> str:
        return f"{RATE_KEY_PREFIX}{phone}"

    async def allow(self, phone: str) -> bool:
        """Count one issuance attempt and report whether it is within budget."""
        key = self.key(phone)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.pexpire(key, self._window_ms, nx=True)
                count, _ = await bounded(pipe.execute(), self._timeout)
        except (redis.RedisError, TimeoutError) as exc:
            raise StoreUnavailable(f"rate limit check failed: {exc!r}") from exc

        allowed = count <= self._limit
        if not allowed:
            logger.info("Rate limit hit for %s (%d/%d)", phone, count, self._limit)
        return allowed
