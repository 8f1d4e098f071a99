"""Delete rate-limit records older than the longest configured window.

Run periodically (cron, scheduled container) as ``cherrycap-prune-rate-limits``.
Records inside any window are never touched, so pruning does not change
admission decisions.
"""

import asyncio
import logging

from cherrycap.core.dependencies import get_rate_limiter
from cherrycap.core.logging import configure_logging
from cherrycap.db.session import async_session_factory, engine

logger = logging.getLogger("cherrycap.scripts.prune_rate_limits")


async def prune_rate_limits() -> int:
    limiter = get_rate_limiter()
    async with async_session_factory() as db, db.begin():
        deleted = await limiter.prune(db)
    logger.info("Pruned %d expired rate-limit records", deleted)
    return deleted


async def _run() -> None:
    try:
        await prune_rate_limits()
    finally:
        await engine.dispose()


def main() -> None:
    configure_logging()
    asyncio.run(_run())


if __name__ == "__main__":
    main()
