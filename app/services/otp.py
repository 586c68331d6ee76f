"""
One-time passcode generation and the Redis-backed OTP store.

Each phone has at most one pending code, stored under ``otp:<phone>``
with a millisecond expiry.  Issuing a new code simply overwrites the
previous one; Redis drops expired keys on its own.

Consumption is single-use.  The key is WATCHed while the code is
compared, and a match is deleted in a MULTI/EXEC, so a code that was
replaced or consumed in between is reported as ``NOT_FOUND`` and the
newer code survives.  A wrong code leaves the pending one untouched.
"""

from __future__ import annotations

import enum
import hmac
import logging
import secrets
from datetime import timedelta

import redis.asyncio as redis
from redis.exceptions import WatchError

from app.config import REMOTE_CALL_TIMEOUT
from app.services.errors import RandomnessUnavailable, StoreUnavailable
from app.services.remote import bounded

logger = logging.getLogger(__name__)

OTP_KEY_PREFIX = "otp:"

_CODE_MIN = 100_000
_CODE_SPAN = 900_000  # codes are drawn from [100000, 999999]


def generate_code() -> str:
    """Return a uniformly random 6-digit code from the OS CSPRNG."""
    try:
        n = secrets.randbelow(_CODE_SPAN)
    except (NotImplementedError, OSError) as exc:
        raise RandomnessUnavailable(str(exc)) from exc
    return str(_CODE_MIN + n)


class ConsumeResult(enum.Enum):
    VALID = "valid"
    INVALID = "invalid"
    NOT_FOUND = "not_found"


def _ms(duration: timedelta) -> int:
    return max(1, int(duration.total_seconds() * 1000))


class OtpStore:
    """Pending codes keyed by phone number."""

    def __init__(self, client: redis.Redis, *, timeout: float = REMOTE_CALL_TIMEOUT) -> None:
        self._redis = client
        self._timeout = timeout

    @staticmethod
    def key(phone: str) -> str:
        return f"{OTP_KEY_PREFIX}{phone}"

    async def issue(self, phone: str, code: str, ttl: timedelta) -> None:
        """Store ``code`` for ``phone``, replacing any pending one."""
        try:
            await bounded(self._redis.set(self.key(phone), code, px=_ms(ttl)), self._timeout)
        except (redis.RedisError, TimeoutError) as exc:
            raise StoreUnavailable(f"otp issue failed: {exc!r}") from exc

    async def consume(self, phone: str, supplied_code: str) -> ConsumeResult:
        key = self.key(phone)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await bounded(pipe.watch(key), self._timeout)
                stored = await bounded(pipe.get(key), self._timeout)
                if stored is None:
                    return ConsumeResult.NOT_FOUND
                if isinstance(stored, bytes):
                    stored = stored.decode()
                if not hmac.compare_digest(stored.encode(), supplied_code.encode()):
                    return ConsumeResult.INVALID
                pipe.multi()
                pipe.delete(key)
                (removed,) = await bounded(pipe.execute(), self._timeout)
        except WatchError:
            # Re-issued or consumed by someone else after we read it.
            logger.debug("OTP for %s changed while consuming", phone)
            return ConsumeResult.NOT_FOUND
        except (redis.RedisError, TimeoutError) as exc:
            raise StoreUnavailable(f"otp consume failed: {exc!r}") from exc

        if not removed:
            return ConsumeResult.NOT_FOUND
        return ConsumeResult.VALID

    async def ping(self) -> None:
        try:
            await bounded(self._redis.ping(), self._timeout)
        except (redis.RedisError, TimeoutError) as exc:
            raise StoreUnavailable(f"redis ping failed: {exc!r}") from exc
