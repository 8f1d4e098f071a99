"""Shared helpers: fake clock, seeding and row lookups."""

from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cherrycap.models.site import Site


class FakeClock:
    """Callable epoch-millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


async def seed_site(
    factory: async_sessionmaker[AsyncSession],
    *,
    site_id: str = "cc_testsite0001",
    user_id: str = "owner-1",
    domain: str = "example.com",
    is_active: bool = True,
) -> Site:
    async with factory() as db, db.begin():
        site = Site(
            user_id=user_id,
            name=f"Site {site_id}",
            domain=domain,
            site_id=site_id,
            is_active=is_active,
        )
        db.add(site)
    return site


async def seed_rows(factory: async_sessionmaker[AsyncSession], *rows: Any) -> None:
    async with factory() as db, db.begin():
        db.add_all(rows)


async def run_in_tx(
    factory: async_sessionmaker[AsyncSession],
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
) -> Any:
    """Call ``fn(db, *args)`` inside its own committed transaction."""
    async with factory() as db, db.begin():
        return await fn(db, *args)


async def fetch_all(factory: async_sessionmaker[AsyncSession], model: type, *criteria) -> list:
    async with factory() as db:
        result = await db.execute(select(model).where(*criteria))
        return list(result.scalars().all())


async def count_rows(factory: async_sessionmaker[AsyncSession], model: type, *criteria) -> int:
    async with factory() as db:
        return await db.scalar(select(func.count()).select_from(model).where(*criteria))
