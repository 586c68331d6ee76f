"""
Per-client-IP request ceiling using slowapi.

Applied to the user directory endpoints only.  OTP issuance has its own
per-phone limiter in Redis (``app.services.rate_limiter``) and OTP
verification is not limited here.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Named rate strings for use in @limiter.limit() decorators
USERS = "30/minute"     # user directory reads


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )
