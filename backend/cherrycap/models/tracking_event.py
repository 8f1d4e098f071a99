import uuid
from typing import Any

from sqlalchemy import JSON, BigInteger, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from cherrycap.db.base import SiteScopedBase


class TrackingEvent(SiteScopedBase):
    __tablename__ = "tracking_events"
    __table_args__ = (
        Index("ix_tracking_events_site_timestamp", "site_id", "timestamp"),
        Index("ix_tracking_events_site_name", "site_id", "name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    # site_id inherited from SiteScopedBase
    session_id: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    properties: Mapped[Any] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=True
    )
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
