from __future__ import annotations

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base, TimestampMixin


class CommuteCacheRow(TimestampMixin, Base):
    """Persisted commute estimate for an apartment/destination/mode triple.

    Keyed by stable identity rather than coordinates: an apartment's location
    does not change once the row exists. Rows older than the cache TTL
    (based on ``updated_at``) are ignored on read and purged by the scheduler.

    Attributes:
        origin_id: Apartment identifier.
        destination_id: Destination (university) identifier.
        mode: Travel mode value.
        travel_minutes: Estimated travel time in minutes.
        distance_meters: Straight-line or routed distance in meters.
    """

    __tablename__ = "commute_cache"
    __table_args__ = (Index("ix_commute_cache_updated_at", "updated_at"),)

    origin_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    destination_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    mode: Mapped[str] = mapped_column(String(16), primary_key=True)
    travel_minutes: Mapped[int] = mapped_column(Integer)
    distance_meters: Mapped[int] = mapped_column(Integer)
