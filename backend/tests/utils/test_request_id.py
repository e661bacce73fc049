import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from padel_booking.main import request_id_middleware, store_error_handler
from padel_booking.utils.request_id import (
    REQUEST_ID_HEADER,
    generate_request_id,
    get_request_id,
    set_request_id,
)
from sqlalchemy.exc import OperationalError


def _app() -> FastAPI:
    app = FastAPI()

    @app.get("/check")
    async def check() -> dict[str, str]:
        return {"rid": get_request_id() or ""}

    @app.get("/store-down")
    async def store_down() -> dict[str, str]:
        raise OperationalError("SELECT 1", None, Exception("connection refused"))

    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(OperationalError, store_error_handler)
    return app


def test_request_id_set_and_clear() -> None:
    set_request_id("req-abc")
    assert get_request_id() == "req-abc"
    set_request_id(None)
    assert get_request_id() is None


def test_generated_request_ids_differ() -> None:
    assert generate_request_id() != generate_request_id()


@pytest.mark.asyncio
async def test_middleware_generates_id_and_echoes_header() -> None:
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as client:
        resp = await client.get("/check")
    assert resp.status_code == 200
    assert resp.headers.get(REQUEST_ID_HEADER)
    assert resp.json()["rid"] == resp.headers[REQUEST_ID_HEADER]
    assert get_request_id() is None


@pytest.mark.asyncio
async def test_middleware_keeps_incoming_id() -> None:
    incoming = "req-court-7"
    async with AsyncClient(
        transport=ASGITransport(app=_app()),
        base_url="http://test",
        headers={REQUEST_ID_HEADER: incoming},
    ) as client:
        resp = await client.get("/check")
    assert resp.headers[REQUEST_ID_HEADER] == incoming
    assert resp.json()["rid"] == incoming


@pytest.mark.asyncio
async def test_store_failure_maps_to_503() -> None:
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as client:
        resp = await client.get("/store-down")
    assert resp.status_code == 503
    assert resp.json()["detail"] == "booking store unavailable, please retry"
