from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from collections.abc import Mapping
from enum import Enum
from typing import Any, Awaitable, Callable, Union

from streamer.core.logging import stream_id_ctx
from streamer.sse.events import (
    DEFAULT_EVENT_TYPE,
    SSE_HEADERS,
    Event,
    StreamConfig,
    sse_encode,
)
from streamer.sse.errors import TransportClosed
from streamer.sse.transport import EventSink

logger = logging.getLogger(__name__)

SourceResult = Union[Event, Mapping[str, Any], None]
EventSource = Callable[[], Union[SourceResult, Awaitable[SourceResult]]]


class StreamOutcome(str, Enum):
    timeout = "timeout"
    disconnected = "disconnected"
    error = "error"


def _error_code(exc: BaseException) -> int:
    code = getattr(exc, "code", 0)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return 0


def _coerce_event(result: Any) -> Event | None:
    if not result:
        return None
    if isinstance(result, Event):
        return Event(data=result.data, type=result.type)
    if isinstance(result, Mapping):
        return Event(
            data=result.get("data"),
            type=result.get("type") or DEFAULT_EVENT_TYPE,
        )
    raise TypeError(
        f"Event source must return a mapping, an Event or None, got {type(result).__name__}"
    )


class EventStream:
    """
    One SSE session bound to a sink.

    ``send_event`` writes a single frame (headers go out before the first one)
    and returns the stream so calls chain. ``run`` drives an event source until
    the timeout passes, the client disconnects or something fails, and reports
    which of those ended it.
    """

    def __init__(
        self,
        config: StreamConfig,
        sink: EventSink,
        *,
        headers: Mapping[str, str] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.stream_id = str(uuid.uuid4())
        self.headers = dict(headers) if headers is not None else dict(SSE_HEADERS)
        self.frames_sent = 0
        self.outcome: StreamOutcome | None = None
        self._sink = sink
        self._clock = clock
        self._sleep = sleep
        self._headers_sent = False

    def encode(self, data: Any, event_type: str = DEFAULT_EVENT_TYPE, id: str | None = None) -> str:
        return sse_encode(
            Event(data=data, type=event_type, id=id),
            allowed_types=self.config.allowed_event_types,
        )

    async def send_event(
        self, data: Any, event_type: str = DEFAULT_EVENT_TYPE, id: str | None = None
    ) -> EventStream:
        return await self.write_frame(self.encode(data, event_type, id))

    async def write_frame(self, frame: str) -> EventStream:
        await self._start()
        await self._sink.write(frame.encode("utf-8"))
        self.frames_sent += 1
        return self

    async def close(self) -> None:
        # A stream that never produced a frame still needs its headers.
        try:
            await self._start()
        except TransportClosed:
            logger.debug("connection gone before headers were sent")
            return
        await self._sink.close()

    async def run(self, source: EventSource) -> StreamOutcome:
        token = stream_id_ctx.set(self.stream_id)
        try:
            logger.info(
                "stream opened",
                extra={
                    "timeout": self.config.connection_timeout,
                    "pacing_interval": self.config.pacing_interval,
                },
            )
            self.outcome = await self._loop(source)
            logger.info(
                "stream closed",
                extra={"outcome": self.outcome.value, "frames_sent": self.frames_sent},
            )
            return self.outcome
        finally:
            stream_id_ctx.reset(token)

    async def _loop(self, source: EventSource) -> StreamOutcome:
        started_at = self._clock()
        while True:
            if self._clock() - started_at > self.config.connection_timeout:
                return StreamOutcome.timeout

            try:
                result = source()
                if inspect.isawaitable(result):
                    result = await result
                event = _coerce_event(result)
                if event is not None:
                    await self.send_event(event.data, event.type)
            except TransportClosed:
                logger.info("client went away mid-write")
                return StreamOutcome.disconnected
            except Exception as exc:
                logger.exception("event source failed, ending stream")
                await self._send_failure(exc)
                return StreamOutcome.error

            await self._sleep(self.config.pacing_interval)

            if await self._sink.is_disconnected():
                return StreamOutcome.disconnected

    async def _send_failure(self, exc: Exception) -> None:
        try:
            await self.send_event(
                {"error": str(exc), "code": _error_code(exc)}, "error"
            )
        except TransportClosed:
            logger.info("client went away before the error event was sent")

    async def _start(self) -> None:
        if self._headers_sent:
            return
        await self._sink.start(self.headers)
        self._headers_sent = True
