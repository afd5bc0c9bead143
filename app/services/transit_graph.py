from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from app.schemas.commute import Location, TransitStop
from app.services.geometry import haversine_meters

TRANSIT_STOP_RADIUS_METERS = 1_200.0
# Blended stop-to-stop speed, roughly 21 km/h
TRANSIT_METERS_PER_MINUTE = 350.0
TRANSFER_PENALTY_MINUTES = 5
MIN_TRANSIT_MINUTES = 12


@dataclass(frozen=True)
class Trip:
    """A zero- or single-transfer connection between two stops."""

    origin_stop: TransitStop
    destination_stop: TransitStop
    lines: tuple[str, ...]
    transfer_count: int
    transfer_stop: TransitStop | None = None


def nearest_stop(
    point: Location,
    stops: Iterable[TransitStop],
    radius_meters: float = TRANSIT_STOP_RADIUS_METERS,
) -> TransitStop | None:
    """Return the closest stop to ``point`` if it lies within ``radius_meters``."""
    nearest: TransitStop | None = None
    min_distance = math.inf

    for stop in stops:
        distance = haversine_meters(point, stop.location)
        if distance < min_distance:
            min_distance = distance
            nearest = stop

    return nearest if min_distance <= radius_meters else None


def _first_shared_line(lines: Sequence[str], other: frozenset[str]) -> str | None:
    return next((line for line in lines if line in other), None)


def connect(
    origin_stop: TransitStop,
    destination_stop: TransitStop,
    stops: Iterable[TransitStop],
) -> Trip | None:
    """Find a direct or single-transfer trip between two stops.

    A direct trip uses the first origin line that also serves the destination.
    Otherwise every other stop served by both an origin line and a destination
    line is a transfer candidate; the one with the smallest detour
    ``d(origin, candidate) + d(candidate, destination)`` wins. Only geometry is
    considered: headways and direction of travel are not modelled.

    Returns:
        The trip, or None when the stops are not connected within one transfer.
    """
    destination_lines = destination_stop.route_set
    direct = _first_shared_line(origin_stop.routes, destination_lines)
    if direct is not None:
        return Trip(
            origin_stop=origin_stop,
            destination_stop=destination_stop,
            lines=(direct,),
            transfer_count=0,
        )

    best: Trip | None = None
    best_score = math.inf

    for candidate in stops:
        if candidate.id in (origin_stop.id, destination_stop.id):
            continue
        candidate_lines = candidate.route_set
        first_leg = _first_shared_line(origin_stop.routes, candidate_lines)
        second_leg = _first_shared_line(destination_stop.routes, candidate_lines)
        if first_leg is None or second_leg is None:
            continue

        score = haversine_meters(
            origin_stop.location, candidate.location
        ) + haversine_meters(candidate.location, destination_stop.location)
        if score < best_score:
            best_score = score
            best = Trip(
                origin_stop=origin_stop,
                destination_stop=destination_stop,
                lines=(first_leg, second_leg),
                transfer_count=1,
                transfer_stop=candidate,
            )

    return best


def estimate_transit_minutes(distance_meters: float, transfer_count: int) -> int:
    """Estimate minutes for a transit trip, never below the wait-time floor."""
    base = distance_meters / TRANSIT_METERS_PER_MINUTE
    return max(
        MIN_TRANSIT_MINUTES,
        int(round(base + transfer_count * TRANSFER_PENALTY_MINUTES)),
    )


def describe_trip(trip: Trip) -> list[str]:
    """Human-readable steps for a trip."""
    steps = [f"Walk to {trip.origin_stop.name}"]
    if trip.transfer_count and trip.transfer_stop is not None:
        first, second = trip.lines
        steps.append(
            f"Take {first}, transfer at {trip.transfer_stop.name} to {second}"
        )
    else:
        steps.append(f"Take {trip.lines[0]}")
    steps.append(f"Walk from {trip.destination_stop.name}")
    return steps
