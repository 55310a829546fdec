"""
QuickNotes Backend — Rate Limit Middleware Tests
==================================================

What:  The per-IP sliding window on /api/ paths, on a minimal app so the
       limit can be set low without touching global settings.
"""

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from quicknotes.middleware.rate_limit import RateLimitMiddleware
from quicknotes.middleware.request_id import RequestIDMiddleware


def _app(max_requests=2):
    app = FastAPI()

    @app.get("/api/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"ok": True}

    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)
    app.add_middleware(RequestIDMiddleware)
    return app


@pytest.mark.asyncio
async def test_blocks_after_limit():
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        assert (await client.get("/api/ping")).status_code == 200
        assert (await client.get("/api/ping")).status_code == 200
        response = await client.get("/api/ping", headers={"X-Request-ID": "rl-1"})

    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "rate_limit_exceeded"
    assert body["request_id"] == "rl-1"
    assert 1 <= int(response.headers["retry-after"]) <= 61


@pytest.mark.asyncio
async def test_non_api_paths_are_not_limited():
    transport = ASGITransport(app=_app(max_requests=1))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        statuses = [(await client.get("/health")).status_code for _ in range(5)]

    assert statuses == [200] * 5
