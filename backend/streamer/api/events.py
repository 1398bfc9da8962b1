from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from streamer.core.config import Settings, get_settings
from streamer.core.limits import ClientLimiter
from streamer.sse.events import DEFAULT_EVENT_TYPE, StreamConfig
from streamer.sse.responses import EventStreamResponse, send, stream

logger = logging.getLogger(__name__)
router = APIRouter()


class SendEventRequest(BaseModel):
    data: Any = None
    type: str = Field(default=DEFAULT_EVENT_TYPE, max_length=64)
    id: str | None = Field(default=None, max_length=256)


def get_client_limiter(request: Request) -> ClientLimiter:
    return request.app.state.client_limiter


def clock_source() -> Callable[[], dict[str, Any]]:
    """Event source emitting the current UTC time on every poll."""
    seq = itertools.count(1)

    def poll() -> dict[str, Any]:
        return {
            "type": "update",
            "data": {
                "seq": next(seq),
                "time": datetime.now(timezone.utc).isoformat(),
            },
        }

    return poll


@router.post("/events", response_class=EventStreamResponse)
async def send_event(
    body: SendEventRequest,
    settings: Settings = Depends(get_settings),
) -> EventStreamResponse:
    config = StreamConfig.from_settings(settings)
    return send(body.data, body.type, body.id, config=config)


@router.get("/events/stream", response_class=EventStreamResponse)
async def stream_clock(
    timeout: int | None = Query(default=None, ge=0),
    settings: Settings = Depends(get_settings),
    limiter: ClientLimiter = Depends(get_client_limiter),
) -> EventStreamResponse:
    if not limiter.acquire():
        raise HTTPException(
            status_code=503,
            detail="Too many open event streams. Try again later.",
        )

    config = StreamConfig.from_settings(settings)
    logger.info(
        "opening clock stream",
        extra={"active": limiter.active, "max_clients": limiter.max_clients},
    )
    return stream(
        clock_source(), timeout=timeout, config=config, on_close=limiter.release
    )
