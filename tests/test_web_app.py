"""Tests for the read-only web application."""

import pytest
from fastapi.testclient import TestClient

from unified_airquality.config import parse_config
from unified_airquality.context import AppContext
from unified_airquality.web.app import create_app
from tests.mock_provider import MockProvider


def make_context(values=None, fail=False) -> AppContext:
    config = parse_config(
        {
            "update": {"interval": 60, "history_interval": 60},
            "sources": [{"id": "a", "provider": "mock"}],
            "services": {
                "temperature": {"temperature": "a"},
                "airquality": {"no2": "a", "pm2.5": "a"},
            },
        }
    )
    values = values if values is not None else {"temperature": 21.5, "no2": 45.0, "pm2.5": 31.0}
    factories = {"mock": lambda source: MockProvider(source, values=values, fail_on_poll=fail)}
    return AppContext.create(config, factories=factories)


class TestWebApp:
    def test_create_app_stores_context(self):
        context = make_context()
        app = create_app(context)
        assert app.state.context is context

    def test_values_before_first_cycle(self):
        client = TestClient(create_app(make_context()))

        response = client.get("/api/values")

        assert response.status_code == 200
        data = response.json()
        assert data["cycle"] is None
        assert data["values"] == {}
        assert data["air_quality"] == "unknown"

    @pytest.mark.asyncio
    async def test_values_after_cycle(self):
        context = make_context()
        await context.run_pipeline()
        client = TestClient(create_app(context))

        data = client.get("/api/values").json()

        assert data["cycle"] == 1
        assert data["values"] == {"temperature": 21.5, "no2": 45.0, "pm2.5": 31.0}
        assert data["air_quality"] == "fair"
        assert data["air_quality_level"] == 3
        assert data["faults"] == {"temperature": False, "airquality": False}
        assert data["failed_sources"] == []

    @pytest.mark.asyncio
    async def test_values_with_fault(self):
        context = make_context(fail=True)
        await context.run_pipeline()
        client = TestClient(create_app(context))

        data = client.get("/api/values").json()

        assert data["faults"] == {"temperature": True, "airquality": True}
        assert data["failed_sources"] == ["a"]
        assert data["values"]["temperature"] is None

    @pytest.mark.asyncio
    async def test_history_endpoint(self):
        context = make_context()
        await context.run_pipeline()
        await context.run_pipeline()
        client = TestClient(create_app(context))

        response = client.get("/api/history", params={"limit": 1})

        assert response.status_code == 200
        entries = response.json()
        assert len(entries) == 1
        assert entries[0]["temp"] == 21.5

    @pytest.mark.asyncio
    async def test_health(self):
        context = make_context()
        await context.run_pipeline()
        client = TestClient(create_app(context))

        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["cycles"] == 1
        assert data["error"] is False
