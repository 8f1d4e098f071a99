import uuid

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cherrycap.db.base import SiteScopedBase


class TrackedSession(SiteScopedBase):
    """One visitor session on a tracked site. Times are epoch milliseconds."""

    __tablename__ = "tracked_sessions"
    __table_args__ = (
        Index("ix_tracked_sessions_site_start", "site_id", "start_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    # site_id inherited from SiteScopedBase
    session_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    visitor_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    start_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_activity: Mapped[int] = mapped_column(BigInteger, nullable=False)
    device: Mapped[str] = mapped_column(String(32), nullable=False)
    browser: Mapped[str] = mapped_column(String(64), nullable=False)
    os: Mapped[str] = mapped_column(String(64), nullable=False)
    country: Mapped[str | None] = mapped_column(String(64), nullable=True)
    referrer: Mapped[str | None] = mapped_column(Text, nullable=True)
    referrer_type: Mapped[str] = mapped_column(String(32), nullable=False, default="direct")
    page_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # seconds
    is_bounce: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
