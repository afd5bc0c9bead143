from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import NoReturn

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncConnection

# Ensure the backend root (parent of this file's directory) is on sys.path
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from app.core.logging import logger  # noqa: E402
from app.models.destination import DestinationRow  # noqa: E402
from app.models.transit_stop import TransitStopRow  # noqa: E402
from app.services.reference_directory import FALLBACK_DESTINATIONS  # noqa: E402
from db.session import engine  # noqa: E402


# Budapest stops around the seeded campuses and common student districts
TRANSIT_STOP_SEEDS: list[dict[str, object]] = [
    {"id": "kalvin-ter", "name": "Kalvin ter", "lat": 47.4893, "lng": 19.0617, "routes": ["M3", "M4", "47", "49"]},
    {"id": "fovam-ter", "name": "Fovam ter", "lat": 47.4870, "lng": 19.0589, "routes": ["M4", "2", "47", "49"]},
    {"id": "szent-gellert-ter", "name": "Szent Gellert ter - Muegyetem", "lat": 47.4834, "lng": 19.0527, "routes": ["M4", "19", "41", "47", "49", "56"]},
    {"id": "muegyetem", "name": "Muegyetem", "lat": 47.4800, "lng": 19.0567, "routes": ["4", "6"]},
    {"id": "deak-ter", "name": "Deak Ferenc ter", "lat": 47.4979, "lng": 19.0545, "routes": ["M1", "M2", "M3", "47", "49"]},
    {"id": "astoria", "name": "Astoria", "lat": 47.4935, "lng": 19.0604, "routes": ["M2", "47", "49"]},
    {"id": "blaha-lujza-ter", "name": "Blaha Lujza ter", "lat": 47.4964, "lng": 19.0704, "routes": ["M2", "4", "6"]},
    {"id": "oktogon", "name": "Oktogon", "lat": 47.5052, "lng": 19.0634, "routes": ["M1", "4", "6"]},
    {"id": "corvin-negyed", "name": "Corvin-negyed", "lat": 47.4860, "lng": 19.0713, "routes": ["M3", "4", "6"]},
    {"id": "ferenc-korut", "name": "Ferenc korut", "lat": 47.4833, "lng": 19.0697, "routes": ["M3", "4", "6"]},
    {"id": "ujbuda-kozpont", "name": "Ujbuda-kozpont", "lat": 47.4745, "lng": 19.0476, "routes": ["M4", "4", "6"]},
    {"id": "keleti", "name": "Keleti palyaudvar", "lat": 47.5002, "lng": 19.0835, "routes": ["M2", "M4"]},
]


async def _seed_reference_data(conn: AsyncConnection) -> None:
    destination_rows = [
        {
            "id": d.id,
            "name": d.name,
            "campus": d.campus,
            "lat": d.location.lat,
            "lng": d.location.lng,
        }
        for d in FALLBACK_DESTINATIONS
    ]
    stmt = insert(DestinationRow).values(destination_rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=[DestinationRow.id],
        set_={
            "name": stmt.excluded.name,
            "campus": stmt.excluded.campus,
            "lat": stmt.excluded.lat,
            "lng": stmt.excluded.lng,
        },
    )
    await conn.execute(stmt)
    logger.info("Seeded %d destinations", len(destination_rows))

    stop_stmt = insert(TransitStopRow).values(TRANSIT_STOP_SEEDS)
    stop_stmt = stop_stmt.on_conflict_do_update(
        index_elements=[TransitStopRow.id],
        set_={
            "name": stop_stmt.excluded.name,
            "lat": stop_stmt.excluded.lat,
            "lng": stop_stmt.excluded.lng,
            "routes": stop_stmt.excluded.routes,
        },
    )
    await conn.execute(stop_stmt)
    logger.info("Seeded %d transit stops", len(TRANSIT_STOP_SEEDS))


async def _init_db_async() -> None:
    async with engine.begin() as conn:
        await _seed_reference_data(conn)
    await engine.dispose()


def main() -> NoReturn:
    """Seed destinations and transit stops."""
    asyncio.run(_init_db_async())
    raise SystemExit(0)


if __name__ == "__main__":
    main()
