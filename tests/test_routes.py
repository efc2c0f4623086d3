"""Tests for cache diagnostics routes."""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from swr_cachex import add_routes
from swr_cachex.cache import SWRCache
from swr_cachex.proxy import CacheProxy


def populate(cache: SWRCache, **values):
    async def load_all():
        for key, value in values.items():

            async def loader(value=value):
                return value

            await cache.get(key, loader)

    asyncio.run(load_all())


@pytest.fixture
def app():
    """Create a test FastAPI application."""
    app = FastAPI()
    add_routes(app)
    return app


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI application."""
    return TestClient(app)


@pytest.fixture
def setup_cache(clock):
    """Register a cache before the test and clear it afterwards."""
    cache = SWRCache(clock=clock, name="routes-test")
    CacheProxy.set_cache(cache)
    yield cache
    CacheProxy.set_cache(None)


class TestEntriesRoute:
    """Test suite for the /swr-cache/entries route."""

    def test_entries_without_cache(self, client):
        response = client.get("/swr-cache/entries")

        assert response.status_code == 200
        data = response.json()
        assert data["entries"] == []
        assert data["total"] == 0
        assert data["stats"] is None

    def test_entries_empty_cache(self, client, setup_cache):
        response = client.get("/swr-cache/entries")

        assert response.status_code == 200
        data = response.json()
        assert data["entries"] == []
        assert data["stats"]["entries"] == 0

    def test_entries_report_age_and_staleness(self, client, setup_cache, clock):
        populate(setup_cache, stats={"total": 1})
        clock.advance(120)
        populate(setup_cache, doctors=["dr. a"])
        clock.advance(200)

        response = client.get("/swr-cache/entries")

        data = response.json()
        assert data["total"] == 2
        assert data["stale"] == 1
        entries = {e["key"]: e for e in data["entries"]}
        assert entries["stats"]["age"] == 320
        assert entries["stats"]["is_stale"] is True
        assert entries["doctors"]["age"] == 200
        assert entries["doctors"]["is_stale"] is False
        assert entries["doctors"]["generation"] == 1
        assert entries["doctors"]["in_flight"] is False


class TestInvalidateRoute:
    """Test suite for DELETE /swr-cache/entries."""

    def test_invalidate_by_prefix(self, client, setup_cache):
        populate(setup_cache, **{"doctors:p1": 1, "doctors:p2": 2, "stats": 3})

        response = client.delete("/swr-cache/entries", params={"prefix": "doctors"})

        assert response.status_code == 200
        assert response.json() == {"invalidated": 2}
        assert setup_cache.store.get_all_keys() == ["stats"]

    def test_invalidate_everything(self, client, setup_cache):
        populate(setup_cache, a=1, b=2)

        response = client.delete("/swr-cache/entries")

        assert response.json() == {"invalidated": 2}
        assert setup_cache.store.get_all_keys() == []

    def test_invalidate_without_cache(self, client):
        response = client.delete("/swr-cache/entries", params={"prefix": "doctors"})

        assert response.json() == {"invalidated": 0}


class TestStatsRoute:
    """Test suite for the /swr-cache/stats route."""

    def test_stats(self, client, setup_cache):
        populate(setup_cache, stats=1)

        response = client.get("/swr-cache/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["misses"] == 1
        assert data["entries"] == 1

    def test_stats_without_cache(self, client):
        response = client.get("/swr-cache/stats")

        assert response.status_code == 503
        assert "Cache is not set" in response.json()["detail"]


def test_custom_prefix():
    app = FastAPI()
    add_routes(app, prefix="/internal/cache")
    client = TestClient(app)

    assert client.get("/internal/cache/entries").status_code == 200
