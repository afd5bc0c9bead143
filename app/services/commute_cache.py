"""Two-tier commute cache.

The process-local tier is keyed by quantized coordinates, destination and mode.
The persistent tier (``commute_cache`` table) is keyed by apartment identity
and is only consulted when the caller supplies an origin id.
"""

from __future__ import annotations

import asyncio
import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Callable, Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError

from app.core.logging import logger
from app.models import utcnow
from app.models.commute_cache import CommuteCacheRow
from app.schemas.commute import (
    CommuteMode,
    CommuteResult,
    Location,
    clamp_minutes,
)
from app.services.reference_directory import SessionFactory

V = TypeVar("V")

DEFAULT_TTL = timedelta(hours=24)
CACHE_KEY_PRECISION = 4


def make_cache_key(location: Location, destination_id: str, mode: CommuteMode | str) -> str:
    """Build the process-local cache key.

    Coordinates are rounded to 4 decimals (about 11 m) so near-duplicate
    origins share a slot.
    """
    lat = round(location.lat, CACHE_KEY_PRECISION)
    lng = round(location.lng, CACHE_KEY_PRECISION)
    return f"{lat:.4f},{lng:.4f}-{destination_id}-{CommuteMode(mode).value}"


class EvictionPolicy(StrEnum):
    LRU = "lru"
    TTL = "ttl"


class BoundedTTLCache(Generic[V]):
    """Thread-safe in-memory cache bounded by capacity and entry age.

    Expired entries are removed by the read that finds them. When full, the
    least recently used entry (``LRU``) or the entry closest to expiry
    (``TTL``) is evicted.
    """

    def __init__(
        self,
        *,
        capacity: int = 10_000,
        ttl: timedelta = DEFAULT_TTL,
        policy: EvictionPolicy = EvictionPolicy.LRU,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.ttl = ttl
        self.policy = EvictionPolicy(policy)
        self._clock = clock
        self._entries: OrderedDict[str, tuple[V, datetime]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> V | None:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            if self.policy is EvictionPolicy.LRU:
                self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: V, *, expires_at: datetime | None = None) -> None:
        expiry = expires_at or self._clock() + self.ttl
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            self._entries[key] = (value, expiry)
            while len(self._entries) > self.capacity:
                self._evict_one()

    def _evict_one(self) -> None:
        if self.policy is EvictionPolicy.LRU:
            self._entries.popitem(last=False)
            return
        soonest = min(self._entries, key=lambda k: self._entries[k][1])
        del self._entries[soonest]

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, exp) in self._entries.items() if exp <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class PersistentCommuteCache:
    """Commute cache rows stored in the ``commute_cache`` table.

    Args:
        session_factory: Callable returning an async session context manager.
        ttl: Maximum age of a row that is still served.
        timeout_seconds: Upper bound for each database round trip.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        ttl: timedelta = DEFAULT_TTL,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._session_factory = session_factory
        self.ttl = ttl
        self._timeout_seconds = timeout_seconds

    async def fetch(
        self, origin_id: str, destination_id: str, mode: CommuteMode
    ) -> tuple[CommuteResult, datetime] | None:
        """Return a fresh row as a result plus its ``updated_at``, or None."""
        cutoff = utcnow() - self.ttl
        stmt = select(CommuteCacheRow).where(
            CommuteCacheRow.origin_id == origin_id,
            CommuteCacheRow.destination_id == destination_id,
            CommuteCacheRow.mode == mode.value,
            CommuteCacheRow.updated_at > cutoff,
        )
        async with self._session_factory() as session:
            row = (
                await asyncio.wait_for(
                    session.execute(stmt), timeout=self._timeout_seconds
                )
            ).scalar_one_or_none()
        if row is None:
            return None

        result = CommuteResult(
            origin_id=row.origin_id,
            destination_id=row.destination_id,
            travel_time_minutes=clamp_minutes(row.travel_minutes),
            distance_meters=max(0, row.distance_meters),
            mode=CommuteMode(row.mode),
            is_estimate=True,
        )
        return result, row.updated_at

    async def upsert(
        self,
        origin_id: str,
        destination_id: str,
        mode: CommuteMode,
        result: CommuteResult,
    ) -> None:
        now = utcnow()
        stmt = insert(CommuteCacheRow).values(
            origin_id=origin_id,
            destination_id=destination_id,
            mode=mode.value,
            travel_minutes=result.travel_time_minutes,
            distance_meters=result.distance_meters,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                CommuteCacheRow.origin_id,
                CommuteCacheRow.destination_id,
                CommuteCacheRow.mode,
            ],
            set_={
                "travel_minutes": stmt.excluded.travel_minutes,
                "distance_meters": stmt.excluded.distance_meters,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        async with self._session_factory() as session:
            await asyncio.wait_for(session.execute(stmt), timeout=self._timeout_seconds)
            await session.commit()

    async def purge_expired(self) -> int:
        cutoff = utcnow() - self.ttl
        stmt = delete(CommuteCacheRow).where(CommuteCacheRow.updated_at <= cutoff)
        async with self._session_factory() as session:
            res = await asyncio.wait_for(
                session.execute(stmt), timeout=self._timeout_seconds
            )
            await session.commit()
        return int(res.rowcount or 0)


class CommuteCache:
    """Process-local cache in front of the optional persistent table."""

    def __init__(
        self,
        local: BoundedTTLCache[CommuteResult] | None = None,
        persistent: PersistentCommuteCache | None = None,
    ) -> None:
        self.local: BoundedTTLCache[CommuteResult] = local or BoundedTTLCache()
        self.persistent = persistent

    async def get(
        self,
        key: str,
        *,
        origin_id: str | None,
        destination_id: str,
        mode: CommuteMode,
    ) -> CommuteResult | None:
        cached = self.local.get(key)
        if cached is not None:
            return cached

        if origin_id is None or self.persistent is None:
            return None

        try:
            found = await self.persistent.fetch(origin_id, destination_id, mode)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            logger.warning(
                "Commute cache lookup failed for %s/%s/%s: %s",
                origin_id,
                destination_id,
                mode,
                exc,
            )
            return None
        if found is None:
            return None

        result, updated_at = found
        self.local.set(key, result, expires_at=updated_at + self.persistent.ttl)
        return result

    async def put(
        self,
        key: str,
        result: CommuteResult,
        *,
        origin_id: str | None,
        destination_id: str,
        mode: CommuteMode,
    ) -> None:
        self.local.set(key, result)

        if origin_id is None or self.persistent is None:
            return

        try:
            await self.persistent.upsert(origin_id, destination_id, mode, result)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            logger.warning(
                "Commute cache write failed for %s/%s/%s: %s",
                origin_id,
                destination_id,
                mode,
                exc,
            )

    async def purge_expired(self) -> int:
        purged = self.local.purge_expired()
        if self.persistent is not None:
            try:
                purged += await self.persistent.purge_expired()
            except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
                logger.warning("Commute cache purge failed: %s", exc)
        return purged
