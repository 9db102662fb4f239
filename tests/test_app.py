"""
DevCamper API — Application Wiring Tests
=========================================

Health check, request IDs, the uniform error body and rate limiting.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from devcamper.config import settings
from devcamper.middleware.rate_limit import RateLimitMiddleware


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["geocoder"] == "available"
        assert body["version"] == "1.0.0"


class TestRequestId:
    @pytest.mark.asyncio
    async def test_generated_when_absent(self, test_client):
        response = await test_client.get("/api/v1/bootcamps")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_client_id_is_echoed_in_header_and_error_body(self, test_client):
        response = await test_client.get("/api/v1/auth/me", headers={"X-Request-ID": "trace-42"})

        assert response.headers["X-Request-ID"] == "trace-42"
        assert response.json()["request_id"] == "trace-42"


class TestErrorShape:
    @pytest.mark.asyncio
    async def test_unknown_route(self, test_client):
        response = await test_client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "http_error"
        assert body["message"] == "Not Found"

    @pytest.mark.asyncio
    async def test_body_validation(self, test_client):
        response = await test_client.post("/api/v1/auth/register", json={"name": "No Email"})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "validation_error"
        assert body["details"]["errors"]


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_requests_over_limit_get_429(self, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 3)

        app = FastAPI()
        app.add_middleware(RateLimitMiddleware)

        @app.get("/ping")
        async def ping():
            return {"ok": True}

        @app.get("/health")
        async def health():
            return {"ok": True}

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [(await client.get("/ping")).status_code for _ in range(3)]
            limited = await client.get("/ping")
            health = await client.get("/health")

        assert statuses == [200, 200, 200]
        assert limited.status_code == 429
        assert int(limited.headers["Retry-After"]) > 0
        body = limited.json()
        assert body["success"] is False
        assert body["error"] == "rate_limit_exceeded"
        assert health.status_code == 200
