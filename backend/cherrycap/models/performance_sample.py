import uuid

from sqlalchemy import BigInteger, Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cherrycap.db.base import SiteScopedBase


class PerformanceSample(SiteScopedBase):
    """Page-load timings; every metric is independently optional."""

    __tablename__ = "performance_samples"
    __table_args__ = (Index("ix_performance_samples_site_timestamp", "site_id", "timestamp"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    # site_id inherited from SiteScopedBase
    session_id: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    load_time: Mapped[float | None] = mapped_column(Float, nullable=True)
    ttfb: Mapped[float | None] = mapped_column(Float, nullable=True)
    fcp: Mapped[float | None] = mapped_column(Float, nullable=True)
    lcp: Mapped[float | None] = mapped_column(Float, nullable=True)
    fid: Mapped[float | None] = mapped_column(Float, nullable=True)
    cls: Mapped[float | None] = mapped_column(Float, nullable=True)
