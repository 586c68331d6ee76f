"""Main FastAPI application for the OTP Auth Service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from app.config import Settings, load_settings
from app.db import UserStore
from app.rate_limit import limiter, rate_limit_exceeded_handler
from app.routers import auth, health, users
from app.services.authenticator import Authenticator
from app.services.errors import ConfigError
from app.services.otp import OtpStore
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def create_redis_client(url: str) -> redis.Redis:
    return redis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=3,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    ``settings`` defaults to the environment; a missing or malformed
    required value aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings
        if cfg is None:
            try:
                cfg = load_settings()
            except ConfigError as exc:
                logger.critical("Invalid configuration: %s", exc)
                raise

        client = create_redis_client(cfg.redis_url)
        user_store = await UserStore.open(cfg.db_path)

        otp_store = OtpStore(client)
        app.state.otp_store = otp_store
        app.state.users = user_store
        app.state.authenticator = Authenticator(
            otp_store,
            RateLimiter(client, limit=cfg.rate_limit, window=cfg.rate_limit_window),
            user_store,
            jwt_secret=cfg.jwt_secret,
            otp_ttl=cfg.otp_ttl,
        )
        logger.info(
            "OTP configuration: otp_ttl=%s rate_limit=%d rate_limit_window=%s",
            cfg.otp_ttl,
            cfg.rate_limit,
            cfg.rate_limit_window,
        )
        try:
            yield
        finally:
            await user_store.close()
            await client.aclose()

    app = FastAPI(
        title="OTP Auth API",
        description="OTP-based authentication and user management service",
        version=health.VERSION,
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    return app


app = create_app()
