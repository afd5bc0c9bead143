from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Iterable

from app.core.logging import logger
from app.schemas.commute import (
    ApartmentLocation,
    CommuteMode,
    CommuteResult,
    Destination,
    Location,
)
from app.services.commute_cache import (
    BoundedTTLCache,
    CommuteCache,
    EvictionPolicy,
    PersistentCommuteCache,
    make_cache_key,
)
from app.services.commute_errors import DestinationNotFoundError
from app.services.commute_providers import ProviderChain
from app.services.directions_client import DirectionsClient
from app.services.reference_directory import ReferenceDirectory, SessionFactory
from core.settings import Settings

# Students default to public transport; first mode with a result wins
ALL_COMMUTES_MODE_PRIORITY: tuple[CommuteMode, ...] = (
    CommuteMode.TRANSIT,
    CommuteMode.WALKING,
    CommuteMode.BICYCLING,
)


class CommuteService:
    """Public entry point for commute estimates.

    Instances are built with :meth:`create`, which loads reference data before
    returning. Callers own the instance; the FastAPI app keeps one on
    ``app.state``.
    """

    def __init__(
        self,
        directory: ReferenceDirectory,
        chain: ProviderChain,
        cache: CommuteCache,
        *,
        batch_concurrency: int = 4,
    ) -> None:
        self.directory = directory
        self.chain = chain
        self.cache = cache
        self._batch_concurrency = max(1, batch_concurrency)

    @classmethod
    async def create(
        cls,
        settings: Settings,
        *,
        session_factory: SessionFactory | None = None,
        directions: DirectionsClient | None = None,
    ) -> CommuteService:
        """Build a ready service.

        Destinations and transit stops are loaded from the database when a
        session factory is given. If the store is unreachable or empty, the
        embedded destinations are used and the transit graph estimate is
        disabled until stops can be loaded.

        Args:
            settings: Application settings.
            session_factory: Async session factory, or None to run without a
                database (no persistent cache tier).
            directions: Directions client; built from settings when omitted.

        Returns:
            A service whose reference data has been loaded.
        """
        directory = ReferenceDirectory(
            session_factory,
            timeout_seconds=settings.commute_store_timeout_seconds,
            retry_interval_seconds=settings.reference_data_retry_seconds,
        )
        await directory.load()

        if directions is None:
            token = settings.mapbox_access_token
            directions = DirectionsClient(
                token.get_secret_value() if token else None,
                timeout=settings.directions_timeout_seconds,
            )
        if not directions.configured:
            logger.warning(
                "MAPBOX_ACCESS_TOKEN not configured; walking, cycling and driving "
                "commutes will use straight-line estimates"
            )

        ttl = timedelta(hours=settings.commute_cache_ttl_hours)
        persistent = (
            PersistentCommuteCache(
                session_factory,
                ttl=ttl,
                timeout_seconds=settings.commute_store_timeout_seconds,
            )
            if session_factory is not None
            else None
        )
        cache = CommuteCache(
            local=BoundedTTLCache(
                capacity=settings.commute_cache_capacity,
                ttl=ttl,
                policy=EvictionPolicy(settings.commute_cache_eviction),
            ),
            persistent=persistent,
        )
        chain = ProviderChain(
            directory,
            directions,
            stop_radius_meters=settings.transit_stop_radius_meters,
        )

        logger.info(
            "Commute service ready: %d destinations, %d transit stops, directions %s",
            len(directory.destinations),
            len(directory.stops),
            "enabled" if directions.configured else "disabled",
        )
        return cls(
            directory,
            chain,
            cache,
            batch_concurrency=settings.commute_batch_concurrency,
        )

    def get_destinations(self) -> list[Destination]:
        return self.directory.destinations

    async def calculate_commute(
        self,
        location: Location,
        destination_id: str,
        mode: CommuteMode | str = CommuteMode.TRANSIT,
        origin_id: str | None = None,
    ) -> CommuteResult:
        """Estimate the commute from ``location`` to a destination.

        Results are served from cache when available, otherwise computed by
        the provider chain and written to both cache tiers.

        Raises:
            DestinationNotFoundError: ``destination_id`` is not a known destination.
        """
        mode = CommuteMode(mode)
        await self.directory.ensure_loaded()
        destination = self.directory.find_destination(destination_id)
        if destination is None:
            raise DestinationNotFoundError(destination_id)

        key = make_cache_key(location, destination_id, mode)
        cached = await self.cache.get(
            key, origin_id=origin_id, destination_id=destination_id, mode=mode
        )
        if cached is not None:
            return cached.model_copy(
                update={"origin_id": origin_id, "destination_id": destination_id}
            )

        fresh = await self.chain.fetch(location, destination.location, mode)
        result = fresh.model_copy(
            update={"origin_id": origin_id, "destination_id": destination_id}
        )
        await self.cache.put(
            key, result, origin_id=origin_id, destination_id=destination_id, mode=mode
        )
        return result

    async def calculate_all_commutes(
        self, location: Location, origin_id: str
    ) -> list[CommuteResult]:
        """Return one commute per destination using the first mode that answers."""
        await self.directory.ensure_loaded()
        results: list[CommuteResult] = []

        for destination in self.directory.destinations:
            for mode in ALL_COMMUTES_MODE_PRIORITY:
                result = await self.calculate_commute(
                    location, destination.id, mode, origin_id
                )
                if result is not None:
                    results.append(result)
                    break

        return results

    async def batch_calculate_commutes(
        self, apartments: Iterable[ApartmentLocation]
    ) -> dict[str, list[CommuteResult]]:
        """Run :meth:`calculate_all_commutes` for many apartments.

        Apartments are processed concurrently up to the configured limit; each
        apartment's own destinations are handled sequentially. The returned
        mapping follows input order.
        """
        items = list(apartments)
        semaphore = asyncio.Semaphore(self._batch_concurrency)

        async def _one(item: ApartmentLocation) -> list[CommuteResult]:
            async with semaphore:
                return await self.calculate_all_commutes(item.location, item.id)

        commutes = await asyncio.gather(*(_one(item) for item in items))
        return {item.id: result for item, result in zip(items, commutes)}

    async def purge_expired_cache(self) -> int:
        return await self.cache.purge_expired()
