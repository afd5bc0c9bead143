from __future__ import annotations

from typing import Annotated, TypeAlias

from fastapi import Depends, HTTPException, Request, status

from app.services.commute_service import CommuteService


def get_commute_service(request: Request) -> CommuteService:
    service = getattr(request.app.state, "commute_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Commute service is not ready",
        )
    return service


CommuteServiceDep: TypeAlias = Annotated[CommuteService, Depends(get_commute_service)]
