from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class SiteScopedBase(Base):
    """Abstract base for tracked-data tables. Adds the public site_id + index.

    site_id is a weak reference to ``sites.site_id`` (no FK): rows are written
    by the unauthenticated tracking endpoint and removed with their site.
    """

    __abstract__ = True

    site_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
