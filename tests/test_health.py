"""Health endpoint and request-id middleware."""

from httpx import AsyncClient

from agency.middleware.request_id import resolve_request_id


async def test_health_returns_ok(client: AsyncClient) -> None:
    """GET /api/v1/health returns 200 and the active storage backend."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "backend": "memory"}


async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


async def test_request_id_generated_when_missing(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")
    assert response.headers["X-Request-ID"]


def test_malformed_request_id_is_replaced() -> None:
    assert resolve_request_id("ok_id-1") == "ok_id-1"
    replaced = resolve_request_id("bad id\nwith newline")
    assert replaced != "bad id\nwith newline"
    assert resolve_request_id(None)
