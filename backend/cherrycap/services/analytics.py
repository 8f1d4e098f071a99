"""Owner-facing aggregate queries over tracked sessions and page views.

Aggregation happens in Python over the rows of the requested range; every
query is bounded by ``site_id`` plus a time index.
"""

import math
from collections import Counter, defaultdict
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cherrycap.core.clock import now_ms
from cherrycap.models.page_view import PageView
from cherrycap.models.performance_sample import PerformanceSample
from cherrycap.models.tracked_session import TrackedSession
from cherrycap.schemas.analytics import (
    NamedCount,
    OverviewStats,
    PerformancePoint,
    TopPage,
    TrafficPoint,
)

DAY_MS = 24 * 60 * 60 * 1000
ACTIVE_WINDOW_MS = 5 * 60 * 1000

REFERRER_LABELS = {
    "direct": "Direct",
    "organic": "Organic Search",
    "social": "Social Media",
    "referral": "Referral",
    "email": "Email",
}
DEVICE_LABELS = {"desktop": "Desktop", "mobile": "Mobile", "tablet": "Tablet"}


def _round_half_up(value: float, digits: int = 0) -> float:
    """Round halves up, like JS ``Math.round``; ``round()`` rounds halves to even."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _range_start(days: int, now: int) -> int:
    return now - days * DAY_MS


def _day_key(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).date().isoformat()


def _day_buckets(days: int, now: int) -> list[str]:
    """ISO dates (UTC) for the last ``days`` days, oldest first, ending today."""
    today = datetime.fromtimestamp(now / 1000, tz=UTC).date()
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def _weekday(day: str) -> str:
    return datetime.fromisoformat(day).strftime("%a")


async def _sessions_since(db: AsyncSession, site_id: str, start: int) -> list[TrackedSession]:
    result = await db.execute(
        select(TrackedSession).where(
            TrackedSession.site_id == site_id, TrackedSession.start_time >= start
        )
    )
    return list(result.scalars().all())


async def _page_views_since(db: AsyncSession, site_id: str, start: int) -> list[PageView]:
    result = await db.execute(
        select(PageView).where(PageView.site_id == site_id, PageView.timestamp >= start)
    )
    return list(result.scalars().all())


async def overview(db: AsyncSession, site_id: str, days: int = 7) -> OverviewStats:
    start = _range_start(days, now_ms())
    sessions = await _sessions_since(db, site_id, start)
    page_views = await _page_views_since(db, site_id, start)

    if not sessions:
        return OverviewStats(
            visitors=0,
            sessions=0,
            page_views=len(page_views),
            bounce_rate=0,
            avg_duration=0,
            pages_per_session=0,
        )

    bounced = sum(1 for s in sessions if s.is_bounce)
    return OverviewStats(
        visitors=len({s.visitor_id for s in sessions}),
        sessions=len(sessions),
        page_views=len(page_views),
        bounce_rate=_round_half_up(bounced / len(sessions) * 100, 1),
        avg_duration=int(_round_half_up(sum(s.duration for s in sessions) / len(sessions))),
        pages_per_session=_round_half_up(len(page_views) / len(sessions), 1),
    )


async def traffic_over_time(db: AsyncSession, site_id: str, days: int = 7) -> list[TrafficPoint]:
    now = now_ms()
    start = _range_start(days, now)
    buckets = _day_buckets(days, now)
    visitors: dict[str, set[str]] = {day: set() for day in buckets}
    views: Counter[str] = Counter()

    for session in await _sessions_since(db, site_id, start):
        day = _day_key(session.start_time)
        if day in visitors:
            visitors[day].add(session.visitor_id)

    for pv in await _page_views_since(db, site_id, start):
        views[_day_key(pv.timestamp)] += 1

    return [
        TrafficPoint(
            date=day,
            name=_weekday(day),
            visitors=len(visitors[day]),
            page_views=views[day],
        )
        for day in buckets
    ]


async def traffic_sources(db: AsyncSession, site_id: str, days: int = 7) -> list[NamedCount]:
    start = _range_start(days, now_ms())
    counts: Counter[str] = Counter()
    for session in await _sessions_since(db, site_id, start):
        counts[REFERRER_LABELS.get(session.referrer_type, "Direct")] += 1

    # Stable sort: ties keep the label order.
    ranked = sorted(
        ((label, counts[label]) for label in REFERRER_LABELS.values() if counts[label]),
        key=lambda item: item[1],
        reverse=True,
    )
    return [NamedCount(name=name, value=value) for name, value in ranked]


async def device_breakdown(db: AsyncSession, site_id: str, days: int = 7) -> list[NamedCount]:
    start = _range_start(days, now_ms())
    counts: Counter[str] = Counter()
    for session in await _sessions_since(db, site_id, start):
        label = DEVICE_LABELS.get(session.device.lower())
        if label is not None:
            counts[label] += 1

    return [
        NamedCount(name=label, value=counts[label])
        for label in DEVICE_LABELS.values()
        if counts[label]
    ]


async def top_pages(
    db: AsyncSession, site_id: str, days: int = 7, limit: int = 10
) -> list[TopPage]:
    start = _range_start(days, now_ms())
    views: Counter[str] = Counter()
    sessions: dict[str, set[str]] = defaultdict(set)
    for pv in await _page_views_since(db, site_id, start):
        views[pv.path] += 1
        sessions[pv.path].add(pv.session_id)

    return [
        TopPage(page=path, views=count, unique_visitors=len(sessions[path]))
        for path, count in views.most_common(limit)
    ]


def _avg(values: list[float]) -> int:
    return int(_round_half_up(sum(values) / len(values))) if values else 0


async def performance_by_day(
    db: AsyncSession, site_id: str, days: int = 7
) -> list[PerformancePoint]:
    now = now_ms()
    start = _range_start(days, now)
    buckets = _day_buckets(days, now)
    samples: dict[str, dict[str, list[float]]] = {
        day: {"load_time": [], "ttfb": [], "fcp": []} for day in buckets
    }

    result = await db.execute(
        select(PerformanceSample).where(
            PerformanceSample.site_id == site_id, PerformanceSample.timestamp >= start
        )
    )
    for sample in result.scalars().all():
        day = samples.get(_day_key(sample.timestamp))
        if day is None:
            continue
        for metric in ("load_time", "ttfb", "fcp"):
            value = getattr(sample, metric)
            if value:
                day[metric].append(value)

    return [
        PerformancePoint(
            date=day,
            name=_weekday(day),
            load_time=_avg(samples[day]["load_time"]),
            ttfb=_avg(samples[day]["ttfb"]),
            fcp=_avg(samples[day]["fcp"]),
        )
        for day in buckets
    ]


async def active_visitors(db: AsyncSession, site_id: str) -> int:
    """Sessions of the site with activity in the last five minutes."""
    cutoff = now_ms() - ACTIVE_WINDOW_MS
    count = await db.scalar(
        select(func.count(TrackedSession.id)).where(
            TrackedSession.site_id == site_id, TrackedSession.last_activity >= cutoff
        )
    )
    return count or 0
