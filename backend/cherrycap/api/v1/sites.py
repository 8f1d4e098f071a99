"""Site registry endpoints (owner-scoped, bearer-authenticated)."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cherrycap.core.dependencies import get_current_user_id, get_db, get_rate_limiter
from cherrycap.models.site import Site
from cherrycap.schemas.site import SiteCreate, SiteResponse, SiteUpdate, SiteValidation
from cherrycap.services.rate_limit import RateLimiter
from cherrycap.services.sites import (
    allocate_site_id,
    delete_site_cascade,
    get_owned_site,
    get_site_by_public_id,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Rate-limit bucket shared by all site-management writes.
SITE_WRITE_ACTION = "api_call"


async def _owned_site_or_404(db: AsyncSession, site_id: str, user_id: str) -> Site:
    site = await get_owned_site(db, site_id, user_id)
    if site is None:
        raise HTTPException(status_code=404, detail="Site not found")
    return site


@router.post("", response_model=SiteResponse, status_code=201)
async def create_site(
    body: SiteCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> SiteResponse:
    """Register a site for tracking and issue its public ``cc_`` id."""
    await limiter.require(db, user_id, SITE_WRITE_ACTION)

    site = Site(
        user_id=user_id,
        name=body.name,
        domain=body.domain,
        site_id=await allocate_site_id(db),
        is_active=True,
    )
    db.add(site)

    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Site id collision, retry") from exc

    await db.refresh(site)
    logger.info("Created site %s (%s) for user %s", site.site_id, site.domain, user_id)
    return SiteResponse.model_validate(site)


@router.get("", response_model=list[SiteResponse])
async def list_sites(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> list[SiteResponse]:
    result = await db.execute(
        select(Site).where(Site.user_id == user_id).order_by(Site.created_at, Site.id)
    )
    return [SiteResponse.model_validate(s) for s in result.scalars().all()]


@router.get(
    "/validate/{site_id}",
    response_model=SiteValidation,
    response_model_exclude_none=True,
)
async def validate_site_id(
    site_id: str,
    db: AsyncSession = Depends(get_db),
) -> SiteValidation:
    """Public lookup used by the snippet installer to check a site id."""
    site = await get_site_by_public_id(db, site_id)
    if site is None:
        return SiteValidation(valid=False)
    return SiteValidation(valid=True, domain=site.domain, is_active=site.is_active)


@router.get("/{site_id}", response_model=SiteResponse)
async def get_site(
    site_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> SiteResponse:
    site = await _owned_site_or_404(db, site_id, user_id)
    return SiteResponse.model_validate(site)


@router.patch("/{site_id}", response_model=SiteResponse)
async def update_site(
    site_id: str,
    body: SiteUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> SiteResponse:
    """Rename, move, or pause/resume tracking (``is_active``)."""
    site = await _owned_site_or_404(db, site_id, user_id)
    await limiter.require(db, user_id, SITE_WRITE_ACTION)

    update_data = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(site, field, value)

    await db.flush()
    await db.refresh(site)
    return SiteResponse.model_validate(site)


@router.delete("/{site_id}", status_code=204)
async def delete_site(
    site_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """Delete the site together with all of its tracked data."""
    site = await _owned_site_or_404(db, site_id, user_id)
    await limiter.require(db, user_id, SITE_WRITE_ACTION)
    await delete_site_cascade(db, site)
    logger.info("Deleted site %s for user %s", site_id, user_id)
