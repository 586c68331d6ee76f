"""
Error taxonomy surfaced by the authentication core.

Everything a dependency can throw is caught inside ``Authenticator`` and
re-raised as one of the request-level errors below, so routers only ever
deal with this small set.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for request-level authentication failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AuthError):
    """Missing or malformed input. Caller's fault, do not retry."""


class RateLimited(AuthError):
    """Too many OTP requests for this phone in the current window."""


class Unauthorized(AuthError):
    """Wrong, expired or already-used code, or an invalid bearer token."""


class TemporaryFailure(AuthError):
    """A dependency timed out or is down. Safe to retry."""


class ConfigError(Exception):
    """Startup misconfiguration. Fatal to the process, never per-request."""


# ── Component-level errors (never cross the Authenticator boundary) ──────


class StoreUnavailable(Exception):
    """A backing store (Redis or the user database) failed or timed out."""


class RandomnessUnavailable(Exception):
    """The OS secure random source could not be used."""
