"""
SQLite user store using aiosqlite.

Holds one row per phone number that has ever completed verification.
The table is created automatically on first connect.
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from app.models import User
from app.services.errors import StoreUnavailable

logger = logging.getLogger(__name__)


# ── Schema ────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    phone       TEXT NOT NULL UNIQUE,
    created_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_users_created ON users(created_at);
"""


# ── Helpers ───────────────────────────────────────────────────────────────


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_user(row: aiosqlite.Row) -> User:
    return User(
        id=row["id"],
        phone=row["phone"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _search_clause(search: str | None) -> tuple[str, list]:
    if not search:
        return "", []
    # LIKE is case-insensitive for ASCII in SQLite.
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return " WHERE phone LIKE ? ESCAPE '\\'", [f"%{escaped}%"]


def _translate_errors(method):
    """Re-raise driver errors as StoreUnavailable."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except aiosqlite.Error as exc:
            raise StoreUnavailable(f"{method.__name__} failed: {exc!r}") from exc

    return wrapper


# ══════════════════════════════════════════════════════════════════════════
#                           USER REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


class UserStore:
    """Repository over the ``users`` table on a single connection."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._db = conn

    @classmethod
    async def open(cls, path: str) -> UserStore:
        """Open the database and create tables if they don't exist."""
        db_path = Path(path)
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(db_path))
        conn.row_factory = aiosqlite.Row  # dict-like rows
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.executescript(_SCHEMA)
        await conn.commit()
        logger.info("Database initialized at %s", db_path)
        return cls(conn)

    async def close(self) -> None:
        await self._db.close()
        logger.info("Database connection closed")

    @_translate_errors
    async def ping(self) -> None:
        async with self._db.execute("SELECT 1") as cur:
            await cur.fetchone()

    @_translate_errors
    async def exists(self, phone: str) -> bool:
        async with self._db.execute(
            "SELECT EXISTS(SELECT 1 FROM users WHERE phone = ?)", (phone,)
        ) as cur:
            row = await cur.fetchone()
        return bool(row[0])

    @_translate_errors
    async def create(self, phone: str) -> None:
        """Insert a user for ``phone``; a no-op if one already exists."""
        await self._db.execute(
            "INSERT INTO users (phone, created_at) VALUES (?, ?) ON CONFLICT(phone) DO NOTHING",
            (phone, _now_iso()),
        )
        await self._db.commit()

    @_translate_errors
    async def get_by_id(self, user_id: int) -> User | None:
        async with self._db.execute(
            "SELECT id, phone, created_at FROM users WHERE id = ?", (user_id,)
        ) as cur:
            row = await cur.fetchone()
        return _row_to_user(row) if row else None

    @_translate_errors
    async def list_users(self, *, limit: int, offset: int, search: str | None = None) -> list[User]:
        """Page through users, newest first, optionally filtered by phone."""
        where, params = _search_clause(search)
        sql = (
            "SELECT id, phone, created_at FROM users"
            + where
            + " ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
        )
        async with self._db.execute(sql, [*params, limit, offset]) as cur:
            rows = await cur.fetchall()
        return [_row_to_user(r) for r in rows]

    @_translate_errors
    async def count_users(self, search: str | None = None) -> int:
        where, params = _search_clause(search)
        async with self._db.execute("SELECT COUNT(*) FROM users" + where, params) as cur:
            row = await cur.fetchone()
        return int(row[0])
