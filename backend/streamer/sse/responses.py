from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from fastapi.responses import Response
from starlette.types import Receive, Scope, Send
from streamer.sse.events import (
    DEFAULT_EVENT_TYPE,
    SSE_HEADERS,
    Event,
    StreamConfig,
    sse_encode,
)
from streamer.sse.errors import TransportClosed
from streamer.sse.stream import EventSource, EventStream, StreamOutcome
from streamer.sse.transport import ASGISink

logger = logging.getLogger(__name__)


class EventStreamResponse(Response):
    """
    ASGI response that writes pre-encoded frames, then optionally runs an event
    source, then ends the HTTP response. Ending the response is the only way a
    stream stops; the handler is never torn down abruptly.
    """

    media_type = "text/event-stream"

    def __init__(
        self,
        *,
        config: StreamConfig | None = None,
        frames: Iterable[str] = (),
        source: EventSource | None = None,
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.config = config.copy() if config is not None else StreamConfig()
        self.frames = list(frames)
        self.source = source
        self.status_code = status_code
        self.background = None
        self.on_close = on_close
        self.outcome: StreamOutcome | None = None
        self.init_headers({**SSE_HEADERS, **(headers or {})})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        sink = ASGISink(scope, receive, send, status_code=self.status_code)
        event_stream = EventStream(self.config, sink, headers=dict(self.headers.items()))
        try:
            for frame in self.frames:
                await event_stream.write_frame(frame)
            if self.source is not None:
                self.outcome = await event_stream.run(self.source)
        except TransportClosed:
            logger.info("client went away before the stream finished")
            self.outcome = StreamOutcome.disconnected
        finally:
            try:
                await event_stream.close()
            finally:
                if self.on_close is not None:
                    self.on_close()

        if self.background is not None:
            await self.background()


def send(
    data: Any,
    event_type: str = DEFAULT_EVENT_TYPE,
    id: str | None = None,
    *,
    config: StreamConfig | None = None,
    headers: Mapping[str, str] | None = None,
) -> EventStreamResponse:
    """
    Build a response carrying exactly one event.

    The frame is encoded here, so serialization failures raise to the caller
    instead of surfacing halfway through a response.
    """
    config = config.copy() if config is not None else StreamConfig()
    frame = sse_encode(
        Event(data=data, type=event_type, id=id),
        allowed_types=config.allowed_event_types,
    )
    return EventStreamResponse(config=config, frames=[frame], headers=headers)


def stream(
    source: EventSource,
    timeout: int | None = None,
    *,
    config: StreamConfig | None = None,
    headers: Mapping[str, str] | None = None,
    on_close: Callable[[], None] | None = None,
) -> EventStreamResponse:
    """
    Build a response that polls ``source`` until the timeout passes, the client
    disconnects or the source fails. ``timeout=None`` keeps the config's value.
    """
    config = config.copy() if config is not None else StreamConfig()
    if timeout is not None:
        config.set_timeout(timeout)
    return EventStreamResponse(
        config=config, source=source, headers=headers, on_close=on_close
    )
