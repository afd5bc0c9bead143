from __future__ import annotations

from types import SimpleNamespace
from typing import Any

from app.schemas.commute import Destination, Location, TransitStop


def make_stop(
    stop_id: str, lat: float, lng: float, routes: tuple[str, ...] | list[str] = ()
) -> TransitStop:
    return TransitStop(
        id=stop_id,
        name=stop_id.replace("-", " ").title(),
        location=Location(lat=lat, lng=lng),
        routes=tuple(routes),
    )


def make_destination(dest_id: str, lat: float, lng: float) -> Destination:
    return Destination(
        id=dest_id,
        name=f"{dest_id.upper()} University",
        campus="Main Campus",
        location=Location(lat=lat, lng=lng),
    )


def scalars_result(rows: list[Any]) -> SimpleNamespace:
    """Mimic ``(await session.execute(...)).scalars().all()``."""
    return SimpleNamespace(scalars=lambda: SimpleNamespace(all=lambda: rows))


class FakeSessionFactory:
    """Callable returning an async context manager that yields ``session``."""

    def __init__(self, session: Any) -> None:
        self.session = session
        self.opened = 0

    def __call__(self) -> "FakeSessionFactory":
        self.opened += 1
        return self

    async def __aenter__(self) -> Any:
        return self.session

    async def __aexit__(self, *exc: object) -> None:
        return None


class UnreachableSessionFactory:
    """Session factory for a database that refuses every connection."""

    def __init__(self) -> None:
        self.opened = 0

    def __call__(self) -> "UnreachableSessionFactory":
        self.opened += 1
        return self

    async def __aenter__(self) -> Any:
        raise OSError("connection refused")

    async def __aexit__(self, *exc: object) -> None:
        return None
