from __future__ import annotations

import pytest

from app.schemas.commute import Location
from app.services.transit_graph import (
    connect,
    describe_trip,
    estimate_transit_minutes,
    nearest_stop,
)
from tests.utils.factories import make_stop


ASTORIA = make_stop("astoria", 47.4935, 19.0604, ["M2", "47", "49"])
KELETI = make_stop("keleti", 47.5002, 19.0835, ["M2", "M4"])
KALVIN = make_stop("kalvin-ter", 47.4893, 19.0617, ["M3", "M4", "47"])
MUEGYETEM = make_stop("muegyetem", 47.4800, 19.0567, ["4", "6"])
OKTOGON = make_stop("oktogon", 47.5052, 19.0634, ["M1", "4", "6"])
ISOLATED = make_stop("isolated", 47.5500, 19.1500, ["900"])


def test_nearest_stop_returns_closest_within_radius() -> None:
    point = Location(lat=47.4930, lng=19.0600)
    assert nearest_stop(point, [KELETI, ASTORIA, KALVIN]) == ASTORIA


def test_nearest_stop_none_when_beyond_radius() -> None:
    far_away = Location(lat=47.6000, lng=19.3000)
    assert nearest_stop(far_away, [KELETI, ASTORIA]) is None


def test_nearest_stop_none_without_stops() -> None:
    assert nearest_stop(Location(lat=47.49, lng=19.06), []) is None


def test_nearest_stop_respects_custom_radius() -> None:
    point = Location(lat=47.4950, lng=19.0604)  # ~170 m north of Astoria
    assert nearest_stop(point, [ASTORIA], radius_meters=100) is None
    assert nearest_stop(point, [ASTORIA], radius_meters=500) == ASTORIA


def test_connect_shared_line_is_direct() -> None:
    trip = connect(ASTORIA, KELETI, [ASTORIA, KELETI, KALVIN])

    assert trip is not None
    assert trip.transfer_count == 0
    assert trip.lines == ("M2",)
    assert trip.transfer_stop is None


def test_connect_direct_uses_first_shared_line_in_origin_order() -> None:
    origin = make_stop("a", 47.49, 19.06, ["47", "M2"])
    dest = make_stop("b", 47.50, 19.07, ["M2", "47"])
    trip = connect(origin, dest, [origin, dest])
    assert trip is not None
    assert trip.lines == ("47",)


def test_connect_single_transfer_minimises_detour() -> None:
    origin = make_stop("origin", 47.4900, 19.0500, ["A"])
    dest = make_stop("dest", 47.4900, 19.0700, ["B"])
    on_the_way = make_stop("on-the-way", 47.4905, 19.0600, ["A", "B"])
    detour = make_stop("detour", 47.5200, 19.0600, ["A", "B"])

    trip = connect(origin, dest, [origin, detour, on_the_way, dest])

    assert trip is not None
    assert trip.transfer_count == 1
    assert trip.transfer_stop == on_the_way
    assert trip.lines == ("A", "B")


def test_connect_transfer_example_between_real_stops() -> None:
    # Oktogon serves 4/6 but not M2, so only Blaha qualifies
    blaha = make_stop("blaha", 47.4964, 19.0704, ["M2", "4", "6"])
    trip = connect(ASTORIA, MUEGYETEM, [ASTORIA, OKTOGON, blaha, MUEGYETEM])

    assert trip is not None
    assert trip.transfer_stop == blaha
    assert trip.lines == ("M2", "4")


def test_connect_returns_none_without_connection() -> None:
    assert connect(ASTORIA, ISOLATED, [ASTORIA, KELETI, KALVIN, ISOLATED]) is None


def test_connect_ignores_endpoints_as_transfer_candidates() -> None:
    origin = make_stop("origin", 47.49, 19.05, ["A"])
    dest = make_stop("dest", 47.49, 19.07, ["B"])
    assert connect(origin, dest, [origin, dest]) is None


@pytest.mark.parametrize(
    "distance,transfers,expected",
    [
        (0, 0, 12),
        (3_500, 0, 12),
        (7_000, 0, 20),
        (7_000, 1, 25),
        (1_000, 1, 12),
    ],
)
def test_estimate_transit_minutes(distance: float, transfers: int, expected: int) -> None:
    assert estimate_transit_minutes(distance, transfers) == expected


def test_describe_trip_mentions_transfer() -> None:
    blaha = make_stop("blaha", 47.4964, 19.0704, ["M2", "4", "6"])
    trip = connect(ASTORIA, MUEGYETEM, [ASTORIA, blaha, MUEGYETEM])
    assert trip is not None
    assert describe_trip(trip) == [
        "Walk to Astoria",
        "Take M2, transfer at Blaha to 4",
        "Walk from Muegyetem",
    ]
