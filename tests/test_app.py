"""Tests for the application factory: health, auth failures, error envelope."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from arbiter.app import create_app
from arbiter.database.session import get_db


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    app = create_app()

    async def override_get_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = override_get_db

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestApp:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_missing_api_key_is_401_envelope(self, client):
        response = await client.get("/api/v1/disputes/")

        assert response.status_code == 401
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "UNAUTHORIZED"
        assert body["message"] == "API key is required"
        assert body["requestId"]

    @pytest.mark.asyncio
    async def test_unknown_route_uses_envelope(self, client):
        response = await client.get("/api/v1/nowhere")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unhandled_error_hides_detail_message(self, client):
        response = await client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert body["message"] == "An unexpected error occurred."

    @pytest.mark.asyncio
    async def test_openapi_documents_error_envelope(self, client):
        response = await client.get("/api/openapi.json")

        assert response.status_code == 200
        schemas = response.json()["components"]["schemas"]
        assert "ErrorResponse" in schemas
