"""
Shared test fixtures.

Provides:
  • an in-process fake Redis (fakeredis) shared between async code under
    test and synchronous assertions
  • a temporary SQLite user store
  • a FastAPI TestClient wired to both via the app lifespan

The `client` fixture runs the full lifespan (DB init / shutdown) with the
per-IP limiter disabled for convenience.
"""

from __future__ import annotations

from datetime import timedelta

import fakeredis
import fakeredis.aioredis
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.db import UserStore
from app.main import create_app
from app.services.authenticator import Authenticator
from app.services.otp import OtpStore
from app.services.rate_limiter import RateLimiter
from tests.mocks.models import PHONE, TEST_RATE_LIMIT, TEST_SECRET
from tests.mocks.services import InMemoryUsers


# ── Redis ──────────────────────────────────────────────────────────────────


@pytest.fixture()
def redis_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest.fixture()
def fake_redis(redis_server):
    """Async client for code under test."""
    return fakeredis.aioredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture()
def sync_redis(redis_server) -> fakeredis.FakeRedis:
    """Sync client on the same server, for seeding and inspecting keys."""
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


# ── Core services ──────────────────────────────────────────────────────────


@pytest.fixture()
async def user_store(tmp_path):
    store = await UserStore.open(str(tmp_path / "users.db"))
    yield store
    await store.close()


@pytest.fixture()
def users() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture()
def authenticator(fake_redis, users) -> Authenticator:
    return Authenticator(
        OtpStore(fake_redis),
        RateLimiter(fake_redis, limit=TEST_RATE_LIMIT, window=timedelta(minutes=10)),
        users,
        jwt_secret=TEST_SECRET,
        otp_ttl=timedelta(minutes=2),
    )


# ── HTTP ───────────────────────────────────────────────────────────────────


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        redis_url="redis://fake:6379/0",
        jwt_secret=TEST_SECRET,
        otp_ttl=timedelta(minutes=2),
        rate_limit=TEST_RATE_LIMIT,
        rate_limit_window=timedelta(minutes=10),
        db_path=str(tmp_path / "app.db"),
    )


@pytest.fixture()
def _test_env(monkeypatch, redis_server):
    """Point the app at fakeredis and disable the per-IP limiter."""
    monkeypatch.setattr(
        "app.main.create_redis_client",
        lambda url: fakeredis.aioredis.FakeRedis(server=redis_server, decode_responses=True),
    )

    from app.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)


@pytest.fixture()
def client(_test_env, settings) -> TestClient:
    with TestClient(create_app(settings), raise_server_exceptions=False) as tc:
        yield tc


@pytest.fixture()
def login(client, sync_redis):
    """Return a callable that runs the OTP flow and yields auth headers."""

    def _login(phone: str = PHONE) -> dict[str, str]:
        resp = client.post("/v1/request-otp", json={"phone": phone})
        assert resp.status_code == 200
        code = sync_redis.get(f"otp:{phone}")
        resp = client.post("/v1/verify-otp", json={"phone": phone, "code": code})
        assert resp.status_code == 200
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
