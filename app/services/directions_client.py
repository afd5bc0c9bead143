from __future__ import annotations

import logging
from typing import Any

import httpx

from app.schemas.commute import (
    CommuteMode,
    CommuteResult,
    Location,
    RouteSummary,
    clamp_minutes,
)
from app.services.commute_errors import ProviderError, ProviderNotConfiguredError

_logger = logging.getLogger("uvicorn.error")

MAPBOX_DIRECTIONS_URL = "https://api.mapbox.com/directions/v5/mapbox"

_PROFILES: dict[CommuteMode, str] = {
    CommuteMode.WALKING: "walking",
    CommuteMode.BICYCLING: "cycling",
    CommuteMode.DRIVING: "driving",
}


def encode_polyline(coordinates: list[list[float]]) -> str:
    """Render GeoJSON ``[lng, lat]`` pairs as ``lat,lng;lat,lng``."""
    return ";".join(f"{coord[1]},{coord[0]}" for coord in coordinates)


class DirectionsClient:
    """Mapbox Directions API client.

    Args:
        access_token: Mapbox token; when empty every lookup reports the
            provider as not configured.
        timeout: Seconds before the HTTP call is abandoned.
        transport: Optional httpx transport (used by tests).
    """

    provider = "directions"

    def __init__(
        self,
        access_token: str | None,
        *,
        timeout: float = 10.0,
        base_url: str = MAPBOX_DIRECTIONS_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._access_token = access_token
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._access_token)

    async def fetch(
        self, origin: Location, destination: Location, mode: CommuteMode
    ) -> CommuteResult | ProviderError:
        """Return the best route between two points for ``mode``.

        Returns:
            A CommuteResult marked as an estimate, or a ProviderError describing
            why no result is available (missing token, HTTP/API error, timeout,
            malformed or empty response).
        """
        if not self._access_token:
            return ProviderNotConfiguredError(
                self.provider, "Mapbox access token not set"
            )

        profile = _PROFILES.get(mode)
        if profile is None:
            return ProviderNotConfiguredError(
                self.provider, f"No directions profile for mode {mode}"
            )

        url = (
            f"{self._base_url}/{profile}/"
            f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        )
        params = {
            "access_token": self._access_token,
            "geometries": "geojson",
            "steps": "true",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException as exc:
            return ProviderError(
                self.provider, "Directions lookup timed out", technical_detail=str(exc)
            )
        except httpx.HTTPStatusError as exc:
            return ProviderError(
                self.provider,
                "Directions lookup failed",
                technical_detail=f"HTTP {exc.response.status_code}",
            )
        except (httpx.HTTPError, ValueError) as exc:
            return ProviderError(
                self.provider, "Directions lookup failed", technical_detail=str(exc)
            )

        return self._parse(data, mode)

    def _parse(self, data: Any, mode: CommuteMode) -> CommuteResult | ProviderError:
        routes = data.get("routes") if isinstance(data, dict) else None
        if not routes:
            return ProviderError(
                self.provider,
                "No routes from Mapbox Directions",
                technical_detail=str(data.get("code")) if isinstance(data, dict) else None,
            )

        best = routes[0] or {}
        duration = best.get("duration")
        distance = best.get("distance")
        if not isinstance(duration, (int, float)) or not isinstance(
            distance, (int, float)
        ):
            return ProviderError(
                self.provider, "Malformed Mapbox route: missing duration or distance"
            )

        legs = best.get("legs") or []
        steps: list[str] = []
        if legs:
            for step in (legs[0] or {}).get("steps") or []:
                instruction = ((step or {}).get("maneuver") or {}).get("instruction")
                if instruction:
                    steps.append(instruction)

        coordinates = (best.get("geometry") or {}).get("coordinates") or []

        return CommuteResult(
            travel_time_minutes=clamp_minutes(duration / 60),
            distance_meters=max(0, int(round(distance))),
            mode=mode,
            route=RouteSummary(
                steps=steps,
                transfer_count=0,
                lines=[],
                polyline=encode_polyline(coordinates) if coordinates else None,
            ),
            is_estimate=True,
        )
