"""Shared fixtures: isolated settings, both storage backends, and an API client."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from cafe_orders.core.config import get_settings
from cafe_orders.services.storage import JsonFileStorage, SqlStorage, reset_storage

BACKENDS = ["json", "database"]


@pytest.fixture(autouse=True)
def settings_env(tmp_path, monkeypatch):
    """Point every setting at a throwaway directory and disable the ledger queue."""
    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path / "data"))
    monkeypatch.setenv("STORAGE_BACKEND", "json")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cafe.db'}")
    monkeypatch.setenv("EXCEL_EXPORT_ENABLED", "false")
    get_settings.cache_clear()
    reset_storage()
    yield
    get_settings.cache_clear()
    reset_storage()


def make_storage(backend: str, tmp_path):
    if backend == "json":
        return JsonFileStorage(str(tmp_path / "data"), lock_timeout=5)
    return SqlStorage(f"sqlite+aiosqlite:///{tmp_path / 'cafe.db'}")


@pytest.fixture(params=BACKENDS)
async def storage(request, tmp_path):
    backend = make_storage(request.param, tmp_path)
    await backend.startup()
    yield backend
    await backend.shutdown()


@pytest.fixture
async def json_storage(tmp_path):
    backend = make_storage("json", tmp_path)
    await backend.startup()
    yield backend
    await backend.shutdown()


@pytest.fixture(params=BACKENDS)
def client(request, settings_env, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", request.param)
    get_settings.cache_clear()
    reset_storage()

    from cafe_orders.main import app

    with TestClient(app) as test_client:
        yield test_client


class FakeClock:
    """Returns a fixed instant, advancing one minute per call."""

    def __init__(self, start: datetime = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(minutes=1)
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def order_payload():
    return {
        "name": "Asha",
        "phone": "9999999999",
        "tableNo": "4",
        "items": [{"name": "Tea", "price": 20, "quantity": 2}],
        "total": 40,
    }
