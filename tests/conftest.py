import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

# Ensure the backend directory is importable so `app.*` modules resolve
_BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

from app.deps import get_commute_service  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.commute_service import CommuteService  # noqa: E402
from app.services.directions_client import DirectionsClient  # noqa: E402
from core.settings import Settings  # noqa: E402


@pytest.fixture()
def settings_override(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("POSTGRES_HOST", "localhost")
    monkeypatch.setenv("DB_ECHO", "false")
    monkeypatch.delenv("MAPBOX_ACCESS_TOKEN", raising=False)
    monkeypatch.setenv("COMMUTE_CACHE_PURGE_ENABLED", "false")
    yield


@pytest.fixture()
def test_settings(settings_override) -> Settings:
    return Settings()


@pytest_asyncio.fixture
async def commute_service(test_settings: Settings) -> CommuteService:
    # No database and no directions token: embedded destinations, geometry fallback
    return await CommuteService.create(
        test_settings, session_factory=None, directions=DirectionsClient(None)
    )


@pytest.fixture()
def app(settings_override, commute_service: CommuteService) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_commute_service] = lambda: commute_service
    return application


@pytest_asyncio.fixture
async def async_client(app: FastAPI):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


# Lightweight fallback for pytest-mock's 'mocker' fixture when the plugin isn't loaded
@pytest.fixture()
def mocker():
    from unittest.mock import (
        AsyncMock,
        create_autospec as _create_autospec,
        MagicMock,
        Mock,
        patch,
    )

    class _SimpleMocker:
        def __init__(self):
            self._patchers: list = []
            # expose common unittest.mock helpers as attributes
            self.AsyncMock = AsyncMock
            self.MagicMock = MagicMock
            self.Mock = Mock
            self.create_autospec = _create_autospec

        def patch(self, target: str, *args, **kwargs):
            p = patch(target, *args, **kwargs)
            mocked = p.start()
            self._patchers.append(p)
            return mocked

    m = _SimpleMocker()
    try:
        yield m
    finally:
        for p in reversed(m._patchers):
            p.stop()
