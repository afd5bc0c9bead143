from __future__ import annotations

from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base, TimestampMixin


class DestinationRow(TimestampMixin, Base):
    """Commute destination (university campus).

    Attributes:
        id: Stable short identifier, e.g. ``elte``.
        name: Display name.
        campus: Campus name.
        lat: Latitude in degrees.
        lng: Longitude in degrees.
    """

    __tablename__ = "destinations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    campus: Mapped[str] = mapped_column(String(255))
    lat: Mapped[float] = mapped_column(Float)
    lng: Mapped[float] = mapped_column(Float)
