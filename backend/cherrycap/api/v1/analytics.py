"""Dashboard analytics endpoints, scoped to sites the caller owns."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cherrycap.core.dependencies import get_current_user_id, get_db
from cherrycap.models.site import Site
from cherrycap.schemas.analytics import (
    ActiveVisitors,
    NamedCount,
    OverviewStats,
    PerformancePoint,
    TopPage,
    TrafficPoint,
)
from cherrycap.services import analytics
from cherrycap.services.sites import get_owned_site

router = APIRouter()

DEFAULT_DAYS = 7


async def owned_site(
    site_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> Site:
    site = await get_owned_site(db, site_id, user_id)
    if site is None:
        raise HTTPException(status_code=404, detail="Site not found")
    return site


@router.get("/{site_id}/overview", response_model=OverviewStats)
async def get_overview(
    days: int = Query(DEFAULT_DAYS, ge=1, le=365),
    site: Site = Depends(owned_site),
    db: AsyncSession = Depends(get_db),
) -> OverviewStats:
    return await analytics.overview(db, site.site_id, days)


@router.get("/{site_id}/traffic", response_model=list[TrafficPoint])
async def get_traffic(
    days: int = Query(DEFAULT_DAYS, ge=1, le=365),
    site: Site = Depends(owned_site),
    db: AsyncSession = Depends(get_db),
) -> list[TrafficPoint]:
    return await analytics.traffic_over_time(db, site.site_id, days)


@router.get("/{site_id}/sources", response_model=list[NamedCount])
async def get_sources(
    days: int = Query(DEFAULT_DAYS, ge=1, le=365),
    site: Site = Depends(owned_site),
    db: AsyncSession = Depends(get_db),
) -> list[NamedCount]:
    return await analytics.traffic_sources(db, site.site_id, days)


@router.get("/{site_id}/devices", response_model=list[NamedCount])
async def get_devices(
    days: int = Query(DEFAULT_DAYS, ge=1, le=365),
    site: Site = Depends(owned_site),
    db: AsyncSession = Depends(get_db),
) -> list[NamedCount]:
    return await analytics.device_breakdown(db, site.site_id, days)


@router.get("/{site_id}/pages", response_model=list[TopPage])
async def get_top_pages(
    days: int = Query(DEFAULT_DAYS, ge=1, le=365),
    limit: int = Query(10, ge=1, le=100),
    site: Site = Depends(owned_site),
    db: AsyncSession = Depends(get_db),
) -> list[TopPage]:
    return await analytics.top_pages(db, site.site_id, days, limit)


@router.get("/{site_id}/performance", response_model=list[PerformancePoint])
async def get_performance(
    days: int = Query(DEFAULT_DAYS, ge=1, le=365),
    site: Site = Depends(owned_site),
    db: AsyncSession = Depends(get_db),
) -> list[PerformancePoint]:
    return await analytics.performance_by_day(db, site.site_id, days)


@router.get("/{site_id}/active", response_model=ActiveVisitors)
async def get_active_visitors(
    site: Site = Depends(owned_site),
    db: AsyncSession = Depends(get_db),
) -> ActiveVisitors:
    return ActiveVisitors(active=await analytics.active_visitors(db, site.site_id))
