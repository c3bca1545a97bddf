from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from scan_rewards.rewards.errors import ConflictError

LOCK_NOT_AVAILABLE = "55P03"
SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"
CONTENTION_SQLSTATES = frozenset({LOCK_NOT_AVAILABLE, SERIALIZATION_FAILURE, DEADLOCK_DETECTED})


def sqlstate_of(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        state = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if state:
            return str(state)
    return None


@asynccontextmanager
async def redemption_unit_of_work(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    lock_timeout_ms: int,
) -> AsyncIterator[AsyncSession]:
    """One transaction per redemption attempt; lock waits are bounded by ``lock_timeout``.

    Lock timeouts, serialization failures and deadlocks surface as ``ConflictError``.
    """
    try:
        async with session_factory.begin() as session:
            await session.execute(text(f"SET LOCAL lock_timeout = '{int(lock_timeout_ms)}ms'"))
            yield session
    except DBAPIError as exc:
        if sqlstate_of(exc) in CONTENTION_SQLSTATES:
            raise ConflictError from exc
        raise
