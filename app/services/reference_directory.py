"""Destinations and transit stops used by the commute estimator.

Both sets are read from the database once and then treated as read-only.
Destinations fall back to a small embedded list when the store is unavailable
or empty; an empty stop set is acceptable and only disables the transit
schedule-graph estimate.
"""

from __future__ import annotations

import asyncio
import time
from typing import AsyncContextManager, Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import logger
from app.models.destination import DestinationRow
from app.models.transit_stop import TransitStopRow
from app.schemas.commute import Destination, Location, TransitStop

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]

FALLBACK_DESTINATIONS: tuple[Destination, ...] = (
    Destination(
        id="elte",
        name="Eotvos Lorand University",
        campus="Central Campus",
        location=Location(lat=47.4816, lng=19.0585),
    ),
    Destination(
        id="bme",
        name="Budapest University of Technology and Economics",
        campus="Danube Campus",
        location=Location(lat=47.4814, lng=19.0605),
    ),
    Destination(
        id="corvinus",
        name="Corvinus University of Budapest",
        campus="River Campus",
        location=Location(lat=47.486, lng=19.0584),
    ),
)


async def load_destinations(session: AsyncSession) -> list[Destination]:
    """Load destinations ordered by name, or the embedded defaults.

    Returns:
        Destinations from the ``destinations`` table, or ``FALLBACK_DESTINATIONS``
        when the query fails or yields no rows.
    """
    try:
        rows = (
            (await session.execute(select(DestinationRow).order_by(DestinationRow.name)))
            .scalars()
            .all()
        )
    except SQLAlchemyError as exc:
        logger.warning(
            "Unable to load destinations from database, using fallback data: %s", exc
        )
        return list(FALLBACK_DESTINATIONS)

    if not rows:
        logger.warning("No destinations in database, using fallback data")
        return list(FALLBACK_DESTINATIONS)

    return [
        Destination(
            id=row.id,
            name=row.name,
            campus=row.campus,
            location=Location(lat=float(row.lat), lng=float(row.lng)),
        )
        for row in rows
    ]


async def _query_transit_stops(session: AsyncSession) -> list[TransitStop]:
    rows = (
        (await session.execute(select(TransitStopRow).order_by(TransitStopRow.name)))
        .scalars()
        .all()
    )
    return [
        TransitStop(
            id=row.id,
            name=row.name,
            location=Location(lat=float(row.lat), lng=float(row.lng)),
            routes=tuple(row.routes or ()),
        )
        for row in rows
    ]


async def load_transit_stops(session: AsyncSession) -> list[TransitStop]:
    """Load transit stops ordered by name; empty on failure."""
    try:
        return await _query_transit_stops(session)
    except SQLAlchemyError as exc:
        logger.warning("Unable to load transit stops from database: %s", exc)
        return []


class ReferenceDirectory:
    """Holds destinations and transit stops for the lifetime of a service.

    Destinations are read once; whatever that attempt produced (stored rows or
    the embedded fallback) is kept. An empty stop set is retried lazily, at
    most once per ``retry_interval_seconds``.

    Args:
        session_factory: Callable returning an async session context manager, or
            None when no database is available (embedded defaults apply).
        timeout_seconds: Upper bound for each load query.
        retry_interval_seconds: Minimum delay between stop reload attempts.
        clock: Monotonic time source, in seconds.
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        *,
        timeout_seconds: float = 5.0,
        retry_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        destinations: list[Destination] | None = None,
        stops: list[TransitStop] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._timeout_seconds = timeout_seconds
        self._retry_interval_seconds = retry_interval_seconds
        self._clock = clock
        self._destinations: list[Destination] = list(destinations or [])
        self._stops: list[TransitStop] = list(stops or [])
        self._destinations_attempted = bool(self._destinations)
        self._next_stop_attempt = 0.0
        self._stops_warned = False
        self._lock = asyncio.Lock()

    @property
    def destinations(self) -> list[Destination]:
        if self._destinations:
            return list(self._destinations)
        return list(FALLBACK_DESTINATIONS)

    @property
    def stops(self) -> list[TransitStop]:
        return self._stops

    def find_destination(self, destination_id: str) -> Destination | None:
        for destination in self.destinations:
            if destination.id == destination_id:
                return destination
        return None

    def _stops_due(self) -> bool:
        return not self._stops and self._clock() >= self._next_stop_attempt

    async def load(self) -> None:
        """Load both sets from the database."""
        async with self._lock:
            await asyncio.gather(self._load_destinations(), self._load_stops())

    async def ensure_loaded(self) -> None:
        """Load destinations if never attempted and retry empty stops when due."""
        if self._session_factory is None:
            return
        if self._destinations_attempted and not self._stops_due():
            return
        async with self._lock:
            pending = []
            if not self._destinations_attempted:
                pending.append(self._load_destinations())
            if self._stops_due():
                pending.append(self._load_stops())
            if pending:
                await asyncio.gather(*pending)

    async def _load_destinations(self) -> None:
        if self._session_factory is None:
            return
        self._destinations_attempted = True
        try:
            async with self._session_factory() as session:
                loaded = await asyncio.wait_for(
                    load_destinations(session), timeout=self._timeout_seconds
                )
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            logger.warning(
                "Destination lookup unavailable, using fallback data: %s", exc
            )
            loaded = list(FALLBACK_DESTINATIONS)
        self._destinations = loaded

    async def _load_stops(self) -> None:
        if self._session_factory is None:
            return
        try:
            async with self._session_factory() as session:
                loaded = await asyncio.wait_for(
                    _query_transit_stops(session), timeout=self._timeout_seconds
                )
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            if self._stops_warned:
                logger.debug("Transit stop lookup still unavailable: %s", exc)
            else:
                logger.warning("Transit stop lookup unavailable: %s", exc)
                self._stops_warned = True
            loaded = []
        if not loaded:
            self._next_stop_attempt = self._clock() + self._retry_interval_seconds
        self._stops = loaded
