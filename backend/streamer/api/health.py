from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/healthz", tags=["health"])
async def healthz(request: Request) -> dict[str, str | int]:
    limiter = request.app.state.client_limiter
    return {"status": "ok", "open_streams": limiter.active}
