from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


MIN_TRAVEL_MINUTES = 5


class CommuteMode(StrEnum):
    WALKING = "walking"
    BICYCLING = "bicycling"
    TRANSIT = "transit"
    DRIVING = "driving"


class Location(BaseModel):
    """WGS84 coordinate in degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Destination(BaseModel):
    """Commute destination (a university campus).

    Attributes:
        id: Stable identifier used by callers, e.g. ``bme``.
        name: Display name.
        campus: Campus name.
        location: Campus coordinate.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    campus: str
    location: Location


class TransitStop(BaseModel):
    """Transit stop with the lines serving it.

    ``routes`` keeps the stored order so that "first shared line" is stable.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    location: Location
    routes: tuple[str, ...] = ()

    @property
    def route_set(self) -> frozenset[str]:
        return frozenset(self.routes)


class RouteSummary(BaseModel):
    steps: list[str] = []
    transfer_count: int = Field(default=0, ge=0)
    lines: list[str] = []
    polyline: str | None = None


class CommuteResult(BaseModel):
    """Travel time estimate between an origin and a destination.

    Attributes:
        origin_id: Apartment identifier, if the caller supplied one.
        destination_id: Destination identifier.
        travel_time_minutes: Estimated minutes, never below 5.
        distance_meters: Distance in meters.
        mode: Requested travel mode.
        route: Optional route details for display.
        is_estimate: False only for results derived from published transit lines.
    """

    origin_id: str | None = None
    destination_id: str = ""
    travel_time_minutes: int = Field(ge=MIN_TRAVEL_MINUTES)
    distance_meters: int = Field(ge=0)
    mode: CommuteMode
    route: RouteSummary | None = None
    is_estimate: bool = True


class ApartmentLocation(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    location: Location


class AllCommutesRequest(BaseModel):
    origin_id: str = Field(min_length=1, max_length=64)
    location: Location


class AllCommutesResponse(BaseModel):
    origin_id: str
    commutes: list[CommuteResult]


class BatchCommutesRequest(BaseModel):
    apartments: list[ApartmentLocation] = Field(min_length=1, max_length=200)


class BatchCommutesResponse(BaseModel):
    results: dict[str, list[CommuteResult]]


def clamp_minutes(minutes: float) -> int:
    """Round to whole minutes and apply the 5-minute floor."""
    return max(MIN_TRAVEL_MINUTES, int(round(minutes)))
