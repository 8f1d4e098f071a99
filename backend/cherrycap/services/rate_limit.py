"""Sliding-window rate limiting keyed by (user, action).

Each admitted attempt is persisted as a ``RateLimitRecord``; an attempt is
admitted while fewer than ``requests`` records for the same user and action
are newer than ``now - window_ms``. Denials write nothing and raise
``RateLimitExceededError``.

The count-then-insert runs inside the caller's transaction. On PostgreSQL a
transaction-scoped advisory lock on ``user:action`` serialises concurrent
callers so two requests cannot both observe a free slot.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from sqlalchemy import delete, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from cherrycap.core.clock import now_ms
from cherrycap.core.exceptions import RateLimitExceededError
from cherrycap.models.rate_limit_record import RateLimitRecord

logger = logging.getLogger(__name__)

DEFAULT_ACTION = "default"


@dataclass(frozen=True)
class RateLimit:
    requests: int
    window_ms: int


DEFAULT_RATE_LIMITS: Mapping[str, RateLimit] = MappingProxyType(
    {
        "message": RateLimit(requests=10, window_ms=60_000),  # 10 per minute
        "blog_post": RateLimit(requests=15, window_ms=3_600_000),  # 15 per hour
        "api_call": RateLimit(requests=200, window_ms=60_000),  # 200 per minute
        "verification": RateLimit(requests=5, window_ms=86_400_000),  # 5 per day
        DEFAULT_ACTION: RateLimit(requests=60, window_ms=60_000),  # 60 per minute
    }
)


class RateLimiter:
    """Sliding-window limiter configured with an immutable policy table."""

    def __init__(
        self,
        limits: Mapping[str, RateLimit] = DEFAULT_RATE_LIMITS,
        clock: Callable[[], int] = now_ms,
    ):
        if DEFAULT_ACTION not in limits:
            raise ValueError(f"Rate limit policy must define a '{DEFAULT_ACTION}' entry")
        self.limits: Mapping[str, RateLimit] = MappingProxyType(dict(limits))
        self.clock = clock

    def limit_for(self, action: str) -> RateLimit:
        """Configured limit for ``action``; unknown actions use the default."""
        return self.limits.get(action, self.limits[DEFAULT_ACTION])

    async def require(self, db: AsyncSession, user_id: str, action: str) -> None:
        """Admit one attempt or raise ``RateLimitExceededError``."""
        limit = self.limit_for(action)
        await _lock_key(db, f"{user_id}:{action}")

        now = self.clock()
        window_start = now - limit.window_ms

        result = await db.execute(
            select(func.count(RateLimitRecord.id), func.min(RateLimitRecord.timestamp)).where(
                RateLimitRecord.user_id == user_id,
                RateLimitRecord.action == action,
                RateLimitRecord.timestamp > window_start,
            )
        )
        count, oldest = result.one()

        if count >= limit.requests:
            retry_after_ms = (
                oldest + limit.window_ms - now if oldest is not None else limit.window_ms
            )
            logger.info(
                "Rate limit hit: user=%s action=%s count=%d limit=%d retry_after_ms=%d",
                user_id,
                action,
                count,
                limit.requests,
                retry_after_ms,
            )
            raise RateLimitExceededError(action, retry_after_ms)

        db.add(RateLimitRecord(user_id=user_id, action=action, timestamp=now))
        await db.flush()

    async def prune(self, db: AsyncSession) -> int:
        """Delete records older than the longest configured window."""
        horizon = self.clock() - max(limit.window_ms for limit in self.limits.values())
        result = await db.execute(
            delete(RateLimitRecord).where(RateLimitRecord.timestamp <= horizon)
        )
        return result.rowcount or 0


async def _lock_key(db: AsyncSession, key: str) -> None:
    # SQLite serialises writers on its own; only PostgreSQL needs the lock.
    if db.get_bind().dialect.name != "postgresql":
        return
    await db.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
        {"key": key},
    )
