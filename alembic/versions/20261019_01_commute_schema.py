"""commute schema

Revision ID: 20261019_01_commute_schema
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_01_commute_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # destinations
    op.create_table(
        "destinations",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("campus", sa.String(length=255), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_destinations_name", "destinations", ["name"], unique=False)

    # transit_stops
    op.create_table(
        "transit_stops",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column(
            "routes",
            postgresql.ARRAY(sa.String(length=32)),
            server_default="{}",
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_transit_stops_name", "transit_stops", ["name"], unique=False)

    # commute_cache
    op.create_table(
        "commute_cache",
        sa.Column("origin_id", sa.String(length=64), nullable=False),
        sa.Column("destination_id", sa.String(length=64), nullable=False),
        sa.Column("mode", sa.String(length=16), nullable=False),
        sa.Column("travel_minutes", sa.Integer(), nullable=False),
        sa.Column("distance_meters", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("origin_id", "destination_id", "mode"),
    )
    op.create_index(
        "ix_commute_cache_updated_at", "commute_cache", ["updated_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_commute_cache_updated_at", table_name="commute_cache")
    op.drop_table("commute_cache")
    op.drop_index("ix_transit_stops_name", table_name="transit_stops")
    op.drop_table("transit_stops")
    op.drop_index("ix_destinations_name", table_name="destinations")
    op.drop_table("destinations")
