"""
Application configuration from environment variables.

A .env file in the project root is loaded automatically (if present).
Paths and server options have defaults for local development; the OTP,
rate limit, signing and Redis settings are required and are validated
once at startup by ``load_settings()``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

from app.services.errors import ConfigError

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# ── Environment ───────────────────────────────────────────────────────────

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

# ── Paths ─────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# SQLite database file holding the users table
DB_PATH: str = os.getenv("DB_PATH", str(DATA_DIR / "otp_auth.db"))

# ── Remote calls ──────────────────────────────────────────────────────────

# Ceiling for every single Redis / user-store call (seconds).
REMOTE_CALL_TIMEOUT: float = 2.0

# ── Tokens ────────────────────────────────────────────────────────────────

JWT_ALGORITHM: str = "HS256"
JWT_ISSUER: str = "otp-auth-service"
JWT_LIFETIME = timedelta(hours=24)


# ── Required settings ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Settings:
    redis_url: str
    jwt_secret: str
    otp_ttl: timedelta
    rate_limit: int
    rate_limit_window: timedelta
    db_path: str = DB_PATH


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


def parse_duration(value: str) -> timedelta:
    """Parse ``2m``, ``1h30m``, ``500ms`` or a bare number of seconds."""
    text = value.strip().lower()
    if not text:
        raise ValueError("empty duration")
    try:
        return timedelta(seconds=float(text))
    except (ValueError, OverflowError):
        pass

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration {value!r} (use a format like 2m, 10m, 1h)")
    try:
        return timedelta(seconds=total)
    except OverflowError:
        raise ValueError(f"duration {value!r} is out of range") from None


def _require(env: Mapping[str, str], key: str) -> str:
    value = env.get(key, "").strip()
    if not value:
        raise ConfigError(f"missing required env var {key}")
    return value


def _require_duration(env: Mapping[str, str], key: str) -> timedelta:
    raw = _require(env, key)
    try:
        duration = parse_duration(raw)
    except ValueError as exc:
        raise ConfigError(f"{key}: {exc}") from None
    if duration <= timedelta(0):
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return duration


def _require_positive_int(env: Mapping[str, str], key: str) -> int:
    raw = _require(env, key)
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Read and validate the required settings.

    Raises ConfigError on the first missing or malformed value; callers
    treat that as fatal to the process.
    """
    if env is None:
        env = os.environ
    return Settings(
        redis_url=_require(env, "REDIS_URL"),
        jwt_secret=_require(env, "JWT_SECRET"),
        otp_ttl=_require_duration(env, "OTP_TTL"),
        rate_limit=_require_positive_int(env, "RATE_LIMIT"),
        rate_limit_window=_require_duration(env, "RATE_LIMIT_WINDOW"),
        db_path=env.get("DB_PATH", DB_PATH),
    )
