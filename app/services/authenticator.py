"""
Authentication orchestrator: the OTP login flow end to end.

Issuance::

    rate limiter → code generator → OTP store → (code is logged)

Verification::

    OTP store (consume) → user store (exists / create) → token issuer

Each flow is a short linear sequence with no retries.  Any dependency
failure is logged with its detail and surfaced as one of the errors in
``app.services.errors``; the messages on those errors are safe to show
to clients and never say which sub-check failed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol

from app.config import REMOTE_CALL_TIMEOUT
from app.services.errors import (
    RandomnessUnavailable,
    RateLimited,
    StoreUnavailable,
    TemporaryFailure,
    Unauthorized,
    ValidationError,
)
from app.services.otp import ConsumeResult, OtpStore, generate_code
from app.services.rate_limiter import RateLimiter
from app.services.remote import bounded
from app.services.tokens import SigningError, TokenError, issue_token, validate_token

logger = logging.getLogger(__name__)

TEMPORARY_FAILURE_MESSAGE = "Temporary service issue. Please try again."


class UserDirectory(Protocol):
    """The slice of the user store the login flow needs."""

    async def exists(self, phone: str) -> bool: ...

    async def create(self, phone: str) -> None: ...


@dataclass(frozen=True)
class IssuedOtp:
    phone: str
    expires_in: timedelta


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class Authenticator:
    def __init__(
        self,
        otp_store: OtpStore,
        rate_limiter: RateLimiter,
        users: UserDirectory,
        *,
        jwt_secret: str,
        otp_ttl: timedelta,
        generate: Callable[[], str] = generate_code,
        timeout: float = REMOTE_CALL_TIMEOUT,
    ) -> None:
        self._otp_store = otp_store
        self._rate_limiter = rate_limiter
        self._users = users
        self._jwt_secret = jwt_secret
        self._otp_ttl = otp_ttl
        self._generate = generate
        self._timeout = timeout

    # ── Issuance ──────────────────────────────────────────────────────

    async def request_otp(self, phone: str) -> IssuedOtp:
        """Issue a fresh code for ``phone`` unless it is rate limited."""
        if not phone or not phone.strip():
            raise ValidationError("Phone number is required")

        start = time.perf_counter()
        try:
            allowed = await self._rate_limiter.allow(phone)
        except StoreUnavailable as exc:
            logger.error("Rate limit check failed for %s: %s", phone, exc)
            raise TemporaryFailure(TEMPORARY_FAILURE_MESSAGE) from exc
        if not allowed:
            raise RateLimited("Rate limit exceeded")
        rate_limit_ms = _elapsed_ms(start)

        generate_start = time.perf_counter()
        try:
            code = self._generate()
        except RandomnessUnavailable as exc:
            logger.error("OTP generation failed for %s: %s", phone, exc)
            raise TemporaryFailure(TEMPORARY_FAILURE_MESSAGE) from exc

        try:
            await self._otp_store.issue(phone, code, self._otp_ttl)
        except StoreUnavailable as exc:
            logger.error("Storing OTP failed for %s: %s", phone, exc)
            raise TemporaryFailure(TEMPORARY_FAILURE_MESSAGE) from exc
        generate_ms = _elapsed_ms(generate_start)

        # No SMS gateway: the log line is the delivery channel.
        logger.info("OTP generated for %s: %s", phone, code)
        logger.info(
            "OTP request perf: rate_limit_ms=%d generate_ms=%d total_ms=%d",
            rate_limit_ms,
            generate_ms,
            _elapsed_ms(start),
        )
        return IssuedOtp(phone=phone, expires_in=self._otp_ttl)

    # ── Verification ──────────────────────────────────────────────────

    async def verify_otp(self, phone: str, code: str) -> str:
        """Consume ``code`` for ``phone`` and return a signed bearer token."""
        if not phone or not phone.strip() or not code:
            raise ValidationError("Phone and code are required")

        try:
            result = await self._otp_store.consume(phone, code)
        except StoreUnavailable as exc:
            logger.error("OTP validation failed for %s: %s", phone, exc)
            raise TemporaryFailure(TEMPORARY_FAILURE_MESSAGE) from exc

        if result is not ConsumeResult.VALID:
            logger.info("OTP rejected for %s (%s)", phone, result.value)
            raise Unauthorized("Invalid OTP")

        await self._ensure_user(phone)

        try:
            token = issue_token(phone, self._jwt_secret)
        except SigningError as exc:
            logger.error("JWT sign failed for %s: %s", phone, exc)
            raise TemporaryFailure(TEMPORARY_FAILURE_MESSAGE) from exc

        logger.info("User %s authenticated", phone)
        return token

    async def _ensure_user(self, phone: str) -> None:
        try:
            exists = await bounded(self._users.exists(phone), self._timeout)
            if not exists:
                await bounded(self._users.create(phone), self._timeout)
                logger.info("User created for %s", phone)
        except (StoreUnavailable, TimeoutError) as exc:
            logger.error("User store unavailable while verifying %s: %s", phone, exc)
            raise TemporaryFailure(TEMPORARY_FAILURE_MESSAGE) from exc

    # ── Request gate ──────────────────────────────────────────────────

    def authenticate_request(self, token: str) -> str:
        """Return the phone a bearer token was issued for."""
        if not token:
            raise Unauthorized("Invalid or expired token")
        try:
            phone = validate_token(token, self._jwt_secret)
        except TokenError as exc:
            logger.warning("JWT validation failed: %s: %s", type(exc).__name__, exc)
            raise Unauthorized("Invalid or expired token") from exc
        logger.debug("JWT validated for %s", phone)
        return phone
