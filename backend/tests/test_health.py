from __future__ import annotations

import httpx


async def test_healthz(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "open_streams": 0}
        assert resp.headers["x-request-id"]


async def test_request_id_is_echoed(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/healthz", headers={"x-request-id": "abc-123"})
        assert resp.headers["x-request-id"] == "abc-123"
