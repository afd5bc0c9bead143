from __future__ import annotations

from typing import Awaitable, Callable

from app.core.logging import logger
from app.schemas.commute import (
    CommuteMode,
    CommuteResult,
    Location,
    RouteSummary,
    clamp_minutes,
)
from app.services.commute_errors import ProviderError, ProviderNotConfiguredError
from app.services.directions_client import DirectionsClient
from app.services.geometry import haversine_meters
from app.services.reference_directory import ReferenceDirectory
from app.services.transit_graph import (
    TRANSIT_STOP_RADIUS_METERS,
    connect,
    describe_trip,
    estimate_transit_minutes,
    nearest_stop,
)

ProviderTier = Callable[
    [Location, Location, CommuteMode], Awaitable[CommuteResult | ProviderError]
]

# Average speeds for the straight-line estimate, km/h
_FALLBACK_SPEED_KMH: dict[CommuteMode, float] = {
    CommuteMode.WALKING: 5.0,
    CommuteMode.BICYCLING: 15.0,
    CommuteMode.DRIVING: 30.0,
}


def geometry_estimate(
    origin: Location, destination: Location, mode: CommuteMode
) -> CommuteResult:
    """Estimate from straight-line distance and an assumed speed per mode."""
    distance = haversine_meters(origin, destination)
    if mode is CommuteMode.TRANSIT:
        minutes: float = estimate_transit_minutes(distance, 0)
    else:
        minutes = distance / (_FALLBACK_SPEED_KMH[mode] * 1000) * 60

    return CommuteResult(
        travel_time_minutes=clamp_minutes(minutes),
        distance_meters=int(round(distance)),
        mode=mode,
        is_estimate=True,
    )


class ProviderChain:
    """Ordered commute estimators tried until one produces a result.

    Modes other than transit ask the directions provider first; transit uses
    the stop/line graph. Either may decline or fail, in which case the
    straight-line estimate answers. ``fetch`` never raises.
    """

    def __init__(
        self,
        directory: ReferenceDirectory,
        directions: DirectionsClient | None = None,
        *,
        stop_radius_meters: float = TRANSIT_STOP_RADIUS_METERS,
    ) -> None:
        self._directory = directory
        self._directions = directions
        self._stop_radius_meters = stop_radius_meters

    def tiers_for(self, mode: CommuteMode) -> list[ProviderTier]:
        if mode is CommuteMode.TRANSIT:
            return [self._schedule_graph]
        if mode in (CommuteMode.WALKING, CommuteMode.BICYCLING, CommuteMode.DRIVING):
            return [self._external_directions]
        raise ValueError(f"Unsupported commute mode: {mode}")

    async def fetch(
        self, origin: Location, destination: Location, mode: CommuteMode
    ) -> CommuteResult:
        for tier in self.tiers_for(mode):
            try:
                outcome = await tier(origin, destination, mode)
            except Exception as exc:
                outcome = ProviderError(
                    getattr(tier, "__name__", "provider"),
                    "Commute provider raised unexpectedly",
                    technical_detail=repr(exc),
                )
            if isinstance(outcome, CommuteResult):
                return outcome
            self._log_fallthrough(outcome, mode)

        return geometry_estimate(origin, destination, mode)

    @staticmethod
    def _log_fallthrough(error: ProviderError, mode: CommuteMode) -> None:
        if isinstance(error, ProviderNotConfiguredError):
            logger.debug("Skipping %s for %s: %s", error.provider, mode, error)
            return
        logger.warning(
            "Commute provider %s failed for %s, falling back: %s (%s)",
            error.provider,
            mode,
            error,
            error.technical_detail,
        )

    async def _external_directions(
        self, origin: Location, destination: Location, mode: CommuteMode
    ) -> CommuteResult | ProviderError:
        if self._directions is None:
            return ProviderNotConfiguredError("directions", "No directions client")
        return await self._directions.fetch(origin, destination, mode)

    async def _schedule_graph(
        self, origin: Location, destination: Location, mode: CommuteMode
    ) -> CommuteResult | ProviderError:
        stops = self._directory.stops
        if not stops:
            return ProviderNotConfiguredError("transit", "No transit stops loaded")

        origin_stop = nearest_stop(origin, stops, self._stop_radius_meters)
        destination_stop = nearest_stop(destination, stops, self._stop_radius_meters)
        if origin_stop is None or destination_stop is None:
            return ProviderNotConfiguredError("transit", "No transit stop in range")

        trip = connect(origin_stop, destination_stop, stops)
        if trip is None:
            return ProviderNotConfiguredError(
                "transit",
                f"No connection between {origin_stop.id} and {destination_stop.id}",
            )

        distance = haversine_meters(origin, destination)
        return CommuteResult(
            travel_time_minutes=estimate_transit_minutes(distance, trip.transfer_count),
            distance_meters=int(round(distance)),
            mode=CommuteMode.TRANSIT,
            route=RouteSummary(
                steps=describe_trip(trip),
                transfer_count=trip.transfer_count,
                lines=list(trip.lines),
            ),
            is_estimate=False,
        )
