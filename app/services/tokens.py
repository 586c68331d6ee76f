"""
Bearer tokens: HS256-signed JWTs bound to a phone number.

Tokens are self-contained.  Nothing is stored server-side, so a token
stays valid until its ``exp`` claim passes.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import jwt

from app.config import JWT_ALGORITHM, JWT_ISSUER, JWT_LIFETIME

logger = logging.getLogger(__name__)

# Only the symmetric HMAC family is ever accepted on the way in.
_ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]
_REQUIRED_CLAIMS = ["exp", "iat", "nbf", "sub", "iss"]


class SigningError(Exception):
    """The token could not be signed."""


class TokenError(Exception):
    """Base class for every reason a presented token is rejected."""


class TokenMalformed(TokenError):
    pass


class SignatureMismatch(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class TokenNotYetValid(TokenError):
    pass


def issue_token(phone: str, secret: str, *, now: datetime | None = None) -> str:
    """Sign a token for ``phone`` valid for 24 hours from ``now``."""
    if not secret:
        raise SigningError("empty signing secret")
    now = now or datetime.now(UTC)
    payload = {
        "phone": phone,
        "sub": phone,
        "iss": JWT_ISSUER,
        "iat": now,
        "nbf": now,
        "exp": now + JWT_LIFETIME,
    }
    try:
        return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        raise SigningError(str(exc)) from exc


def validate_token(token: str, secret: str, *, now: datetime | None = None) -> str:
    """Verify ``token`` and return the phone it was issued for."""
    try:
        header = jwt.get_unverified_header(token)
    except jwt.DecodeError as exc:
        raise TokenMalformed(str(exc)) from None
    if header.get("alg") not in _ACCEPTED_ALGORITHMS:
        raise SignatureMismatch(f"unexpected signing method: {header.get('alg')!r}")

    options = {"require": _REQUIRED_CLAIMS}
    if now is not None:
        # Time claims are checked below against the supplied clock.
        options.update(verify_exp=False, verify_nbf=False, verify_iat=False)

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=_ACCEPTED_ALGORITHMS,
            issuer=JWT_ISSUER,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired("token has expired") from None
    except jwt.ImmatureSignatureError:
        raise TokenNotYetValid("token is not valid yet") from None
    except jwt.InvalidSignatureError:
        raise SignatureMismatch("signature verification failed") from None
    except jwt.InvalidAlgorithmError as exc:
        raise SignatureMismatch(str(exc)) from None
    except jwt.PyJWTError as exc:
        raise TokenMalformed(str(exc)) from None

    if now is not None:
        ts = now.timestamp()
        if claims["exp"] <= ts:
            raise TokenExpired("token has expired")
        if claims["nbf"] > ts:
            raise TokenNotYetValid("token is not valid yet")

    phone = claims.get("phone") or claims.get("sub")
    if not isinstance(phone, str) or not phone:
        raise TokenMalformed("token carries no phone")
    return phone
