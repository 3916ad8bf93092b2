"""Unit tests for request middleware."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from skybook.core.middleware import setup_middleware
from skybook.routers import health


@pytest.fixture
def middleware_app():
    app = FastAPI()
    setup_middleware(app, enable_logging=True)
    app.include_router(health.router)
    return app


@pytest.mark.asyncio
async def test_request_id_is_echoed(middleware_app):
    async with AsyncClient(transport=ASGITransport(app=middleware_app), base_url="http://test") as client:
        given = await client.post("/v1/health/ping", headers={"X-Request-ID": "req-123"})
        generated = await client.post("/v1/health/ping")

    assert given.headers["X-Request-ID"] == "req-123"
    assert generated.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_traceparent_is_continued(middleware_app):
    """An incoming trace id is kept and a new span id is issued."""
    incoming = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"

    async with AsyncClient(transport=ASGITransport(app=middleware_app), base_url="http://test") as client:
        response = await client.post("/v1/health/ping", headers={"traceparent": incoming})

    version, trace_id, span_id, flags = response.headers["traceparent"].split("-")
    assert version == "00"
    assert trace_id == "4bf92f3577b34da6a3ce929d0e0e4736"
    assert span_id != "00f067aa0ba902b7"
    assert flags == "01"


@pytest.mark.asyncio
async def test_invalid_traceparent_starts_new_trace(middleware_app):
    async with AsyncClient(transport=ASGITransport(app=middleware_app), base_url="http://test") as client:
        response = await client.post("/v1/health/ping", headers={"traceparent": "garbage"})

    trace_id = response.headers["traceparent"].split("-")[1]
    assert len(trace_id) == 32
