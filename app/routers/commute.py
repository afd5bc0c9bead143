from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from app.deps import CommuteServiceDep
from app.schemas.commute import (
    AllCommutesRequest,
    AllCommutesResponse,
    BatchCommutesRequest,
    BatchCommutesResponse,
    CommuteMode,
    CommuteResult,
    Destination,
    Location,
)
from app.services.commute_errors import DestinationNotFoundError


router = APIRouter()


@router.get("/destinations", response_model=list[Destination])
async def list_destinations(service: CommuteServiceDep) -> list[Destination]:
    """Return all known commute destinations."""
    return service.get_destinations()


@router.get("", response_model=CommuteResult)
async def get_commute(
    service: CommuteServiceDep,
    lat: Annotated[float, Query(ge=-90, le=90)],
    lng: Annotated[float, Query(ge=-180, le=180)],
    destination_id: Annotated[str, Query(min_length=1, max_length=64)],
    mode: Annotated[CommuteMode, Query()] = CommuteMode.TRANSIT,
    origin_id: Annotated[str | None, Query(max_length=64)] = None,
) -> CommuteResult:
    """Estimate the commute from a coordinate to one destination.

    Passing ``origin_id`` (the apartment id) enables the persistent cache.
    An unknown destination id yields 404.
    """
    try:
        return await service.calculate_commute(
            Location(lat=lat, lng=lng), destination_id, mode, origin_id
        )
    except DestinationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/all", response_model=AllCommutesResponse)
async def get_all_commutes(
    service: CommuteServiceDep, payload: AllCommutesRequest
) -> AllCommutesResponse:
    """Return one commute per destination for a single apartment."""
    commutes = await service.calculate_all_commutes(payload.location, payload.origin_id)
    return AllCommutesResponse(origin_id=payload.origin_id, commutes=commutes)


@router.post("/batch", response_model=BatchCommutesResponse)
async def batch_commutes(
    service: CommuteServiceDep, payload: BatchCommutesRequest
) -> BatchCommutesResponse:
    """Return commutes to every destination for each apartment in the payload."""
    results = await service.batch_calculate_commutes(payload.apartments)
    return BatchCommutesResponse(results=results)
