"""Write path for tracking-snippet events.

Every mutation except ``end_session`` first resolves the site by its public
id. A missing or paused site is an expected outcome and yields
``TrackResult(success=False)`` without writing anything.
"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from cherrycap.core.clock import now_ms
from cherrycap.models.page_view import PageView
from cherrycap.models.performance_sample import PerformanceSample
from cherrycap.models.tracked_session import TrackedSession
from cherrycap.models.tracking_event import TrackingEvent
from cherrycap.schemas.tracking import (
    EndSessionData,
    EventData,
    PageViewData,
    PerformanceData,
    SessionData,
    TrackResult,
)
from cherrycap.services.sites import get_active_site

logger = logging.getLogger(__name__)

INVALID_SITE = "Invalid or inactive site"

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _rejected(site_id: str, kind: str) -> TrackResult:
    logger.debug("Dropping %s for invalid or inactive site %s", kind, site_id)
    return TrackResult(success=False, error=INVALID_SITE)


def _elapsed_seconds(start_time: int, now: int) -> int:
    return max(now - start_time, 0) // 1000


async def _get_session(db: AsyncSession, session_id: str) -> TrackedSession | None:
    result = await db.execute(
        select(TrackedSession).where(TrackedSession.session_id == session_id)
    )
    return result.scalar_one_or_none()


def _lock_session_stmt(session_id: str):
    """Row lock on the session so concurrent page views count each other."""
    return (
        select(TrackedSession.id)
        .where(TrackedSession.session_id == session_id)
        .with_for_update()
    )


async def _insert_session_if_absent(db: AsyncSession, data: SessionData, now: int) -> bool:
    """INSERT ... ON CONFLICT (session_id) DO NOTHING. True if a row was created."""
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Session upsert is not supported on {dialect}")

    stmt = (
        insert(TrackedSession)
        .values(
            site_id=data.site_id,
            session_id=data.session_id,
            visitor_id=data.visitor_id,
            start_time=now,
            last_activity=now,
            device=data.device,
            browser=data.browser,
            os=data.os,
            country=data.country,
            referrer=data.referrer,
            referrer_type=data.referrer_type or "direct",
            page_count=1,
            duration=0,
            is_bounce=True,
        )
        .on_conflict_do_nothing(index_elements=["session_id"])
        .returning(TrackedSession.id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


async def track_session(db: AsyncSession, data: SessionData) -> TrackResult:
    """Create the session, or refresh activity/duration if it already exists."""
    if await get_active_site(db, data.site_id) is None:
        return _rejected(data.site_id, "session")

    now = now_ms()
    if await _insert_session_if_absent(db, data, now):
        return TrackResult(success=True, is_new=True)

    session = await _get_session(db, data.session_id)
    if session is not None:
        session.last_activity = now
        session.duration = _elapsed_seconds(session.start_time, now)
        await db.flush()
    return TrackResult(success=True, is_new=False)


async def track_page_view(db: AsyncSession, data: PageViewData) -> TrackResult:
    """Record a page view and bump the owning session, if it is known.

    The session stops being a bounce once it has two recorded page views. The
    session row is locked before the insert so the count sees every committed
    view of that session.
    """
    if await get_active_site(db, data.site_id) is None:
        return _rejected(data.site_id, "pageview")

    now = now_ms()
    await db.execute(_lock_session_stmt(data.session_id))
    db.add(
        PageView(
            site_id=data.site_id,
            session_id=data.session_id,
            path=data.path,
            referrer=data.referrer,
            utm_source=data.utm_source,
            utm_medium=data.utm_medium,
            utm_campaign=data.utm_campaign,
            timestamp=now,
        )
    )
    await db.flush()

    views = await db.scalar(
        select(func.count(PageView.id)).where(PageView.session_id == data.session_id)
    )
    values = {"last_activity": now, "page_count": TrackedSession.page_count + 1}
    if views >= 2:
        values["is_bounce"] = False

    await db.execute(
        update(TrackedSession)
        .where(TrackedSession.session_id == data.session_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return TrackResult(success=True)


async def track_performance(db: AsyncSession, data: PerformanceData) -> TrackResult:
    if await get_active_site(db, data.site_id) is None:
        return _rejected(data.site_id, "performance")

    db.add(
        PerformanceSample(
            site_id=data.site_id,
            session_id=data.session_id,
            path=data.path,
            timestamp=now_ms(),
            load_time=data.load_time,
            ttfb=data.ttfb,
            fcp=data.fcp,
            lcp=data.lcp,
            fid=data.fid,
            cls=data.cls,
        )
    )
    await db.flush()
    return TrackResult(success=True)


async def track_event(db: AsyncSession, data: EventData) -> TrackResult:
    if await get_active_site(db, data.site_id) is None:
        return _rejected(data.site_id, "event")

    db.add(
        TrackingEvent(
            site_id=data.site_id,
            session_id=data.session_id,
            name=data.name,
            properties=data.properties,
            timestamp=now_ms(),
        )
    )
    await db.flush()
    return TrackResult(success=True)


async def end_session(db: AsyncSession, data: EndSessionData) -> TrackResult:
    """Finalize duration. Unknown session ids are a silent no-op."""
    session = await _get_session(db, data.session_id)
    if session is not None:
        now = now_ms()
        session.last_activity = now
        session.duration = _elapsed_seconds(session.start_time, now)
        await db.flush()
    return TrackResult(success=True)
