"""Site registry: domain normalization, public id generation, lookups."""

import re
import secrets
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from cherrycap.models.page_view import PageView
from cherrycap.models.performance_sample import PerformanceSample
from cherrycap.models.site import Site
from cherrycap.models.tracked_session import TrackedSession
from cherrycap.models.tracking_event import TrackingEvent

_SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

# Tables whose rows belong to a site through its public site_id.
SITE_SCOPED_MODELS = (TrackedSession, PageView, PerformanceSample, TrackingEvent)


@dataclass(frozen=True)
class SiteIdFormat:
    prefix: str = "cc_"
    alphabet: str = "abcdefghijklmnopqrstuvwxyz0123456789"
    length: int = 12

    def generate(self) -> str:
        return self.prefix + "".join(secrets.choice(self.alphabet) for _ in range(self.length))


DEFAULT_SITE_ID_FORMAT = SiteIdFormat()


def normalize_domain(domain: str) -> str:
    """Lowercase, drop the http(s) scheme and a single trailing slash.

    ``"HTTPS://Example.com/"`` -> ``"example.com"``
    """
    normalized = _SCHEME_PATTERN.sub("", domain.strip().lower())
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


async def get_site_by_public_id(db: AsyncSession, site_id: str) -> Site | None:
    result = await db.execute(select(Site).where(Site.site_id == site_id))
    return result.scalar_one_or_none()


async def get_active_site(db: AsyncSession, site_id: str) -> Site | None:
    """Return the site only when it exists and tracking is enabled."""
    site = await get_site_by_public_id(db, site_id)
    if site is None or not site.is_active:
        return None
    return site


async def get_owned_site(db: AsyncSession, site_id: str, user_id: str) -> Site | None:
    result = await db.execute(
        select(Site).where(Site.site_id == site_id, Site.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def site_id_taken(db: AsyncSession, site_id: str) -> bool:
    result = await db.execute(select(Site.id).where(Site.site_id == site_id))
    return result.first() is not None


async def allocate_site_id(
    db: AsyncSession,
    id_format: SiteIdFormat = DEFAULT_SITE_ID_FORMAT,
    max_attempts: int = 5,
) -> str:
    """Generate a public site id not yet present in ``sites``."""
    for _ in range(max_attempts):
        candidate = id_format.generate()
        if not await site_id_taken(db, candidate):
            return candidate
    raise RuntimeError("Could not allocate a unique site id")


async def delete_site_cascade(db: AsyncSession, site: Site) -> None:
    """Delete a site and every tracked row referencing its public id."""
    for model in SITE_SCOPED_MODELS:
        await db.execute(delete(model).where(model.site_id == site.site_id))
    await db.delete(site)
    await db.flush()
