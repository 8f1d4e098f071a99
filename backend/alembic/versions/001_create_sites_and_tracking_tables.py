"""create sites, tracking and rate limit tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- sites ---
    op.create_table(
        "sites",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("site_id", sa.String(64), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_sites_user_id", "sites", ["user_id"])
    op.create_index("ix_sites_domain", "sites", ["domain"])

    # --- tracked_sessions ---
    op.create_table(
        "tracked_sessions",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("site_id", sa.String(64), nullable=False),
        sa.Column("session_id", sa.String(255), nullable=False, unique=True),
        sa.Column("visitor_id", sa.String(255), nullable=False),
        sa.Column("start_time", sa.BigInteger(), nullable=False),
        sa.Column("last_activity", sa.BigInteger(), nullable=False),
        sa.Column("device", sa.String(32), nullable=False),
        sa.Column("browser", sa.String(64), nullable=False),
        sa.Column("os", sa.String(64), nullable=False),
        sa.Column("country", sa.String(64), nullable=True),
        sa.Column("referrer", sa.Text(), nullable=True),
        sa.Column("referrer_type", sa.String(32), nullable=False, server_default="direct"),
        sa.Column("page_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_bounce", sa.Boolean(), nullable=False, server_default="true"),
    )
    op.create_index("ix_tracked_sessions_site_id", "tracked_sessions", ["site_id"])
    op.create_index("ix_tracked_sessions_visitor_id", "tracked_sessions", ["visitor_id"])
    op.create_index(
        "ix_tracked_sessions_site_start", "tracked_sessions", ["site_id", "start_time"]
    )

    # --- page_views ---
    op.create_table(
        "page_views",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("site_id", sa.String(64), nullable=False),
        sa.Column("session_id", sa.String(255), nullable=False),
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column("referrer", sa.Text(), nullable=True),
        sa.Column("utm_source", sa.Text(), nullable=True),
        sa.Column("utm_medium", sa.Text(), nullable=True),
        sa.Column("utm_campaign", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_page_views_site_id", "page_views", ["site_id"])
    op.create_index("ix_page_views_session_id", "page_views", ["session_id"])
    op.create_index("ix_page_views_site_timestamp", "page_views", ["site_id", "timestamp"])

    # --- performance_samples ---
    op.create_table(
        "performance_samples",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("site_id", sa.String(64), nullable=False),
        sa.Column("session_id", sa.String(255), nullable=False),
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("load_time", sa.Float(), nullable=True),
        sa.Column("ttfb", sa.Float(), nullable=True),
        sa.Column("fcp", sa.Float(), nullable=True),
        sa.Column("lcp", sa.Float(), nullable=True),
        sa.Column("fid", sa.Float(), nullable=True),
        sa.Column("cls", sa.Float(), nullable=True),
    )
    op.create_index("ix_performance_samples_site_id", "performance_samples", ["site_id"])
    op.create_index(
        "ix_performance_samples_site_timestamp",
        "performance_samples",
        ["site_id", "timestamp"],
    )

    # --- tracking_events ---
    op.create_table(
        "tracking_events",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("site_id", sa.String(64), nullable=False),
        sa.Column("session_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("properties", postgresql.JSONB(), nullable=True),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_tracking_events_site_id", "tracking_events", ["site_id"])
    op.create_index(
        "ix_tracking_events_site_timestamp", "tracking_events", ["site_id", "timestamp"]
    )
    op.create_index("ix_tracking_events_site_name", "tracking_events", ["site_id", "name"])

    # --- rate_limit_records ---
    op.create_table(
        "rate_limit_records",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
    )
    op.create_index(
        "ix_rate_limit_records_user_action_ts",
        "rate_limit_records",
        ["user_id", "action", "timestamp"],
    )


def downgrade() -> None:
    op.drop_table("rate_limit_records")
    op.drop_table("tracking_events")
    op.drop_table("performance_samples")
    op.drop_table("page_views")
    op.drop_table("tracked_sessions")
    op.drop_table("sites")
