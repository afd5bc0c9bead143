from __future__ import annotations

import pytest

from app.services import commute_cache_purge_scheduler as scheduler


class FakeService:
    def __init__(self, purged: int = 0, fail: bool = False) -> None:
        self.purged = purged
        self.fail = fail
        self.calls = 0

    async def purge_expired_cache(self) -> int:
        self.calls += 1
        if self.fail:
            raise RuntimeError("db down")
        return self.purged


@pytest.mark.asyncio
async def test_purge_job_returns_purged_count() -> None:
    service = FakeService(purged=7)
    assert await scheduler.run_commute_cache_purge_job(service) == 7  # type: ignore[arg-type]
    assert service.calls == 1


@pytest.mark.asyncio
async def test_purge_job_propagates_failure() -> None:
    with pytest.raises(RuntimeError):
        await scheduler.run_commute_cache_purge_job(FakeService(fail=True))  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_purge_job_skips_when_previous_run_active() -> None:
    service = FakeService(purged=1)
    async with scheduler._job_lock:
        assert await scheduler.run_commute_cache_purge_job(service) == 0  # type: ignore[arg-type]
    assert service.calls == 0


def test_scheduler_not_started_when_disabled(test_settings) -> None:
    assert test_settings.commute_cache_purge_enabled is False
    scheduler.start_commute_cache_purge_scheduler(FakeService(), test_settings)  # type: ignore[arg-type]
    assert scheduler._scheduler is None
    scheduler.shutdown_commute_cache_purge_scheduler()
