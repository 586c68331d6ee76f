from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from app.config import REMOTE_CALL_TIMEOUT

T = TypeVar("T")


async def bounded(call: Awaitable[T], timeout: float = REMOTE_CALL_TIMEOUT) -> T:
    """Await a remote call, raising TimeoutError once ``timeout`` elapses.

    The pending call is cancelled on timeout; every store operation we
    issue is either an overwrite or an atomic delete, so an abandoned
    call never leaves partial state behind.
    """
    return await asyncio.wait_for(call, timeout)
