import uuid

from sqlalchemy import BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from cherrycap.db.base import Base


class RateLimitRecord(Base):
    """One admitted attempt. Denied attempts are never recorded."""

    __tablename__ = "rate_limit_records"
    __table_args__ = (
        Index("ix_rate_limit_records_user_action_ts", "user_id", "action", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
