from __future__ import annotations

import logging
from typing import Mapping, Protocol

from fastapi import Request
from starlette.types import Message, Receive, Scope, Send
from streamer.sse.errors import TransportClosed

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Where an event stream writes its bytes."""

    async def start(self, headers: Mapping[str, str]) -> None: ...

    async def write(self, chunk: bytes) -> None: ...

    async def close(self) -> None: ...

    async def is_disconnected(self) -> bool: ...


class ASGISink:
    """
    Writes an event stream straight to an ASGI connection.

    Every ``write`` is its own ``http.response.body`` message with
    ``more_body=True``, so the server pushes it out immediately.
    """

    def __init__(
        self, scope: Scope, receive: Receive, send: Send, *, status_code: int = 200
    ) -> None:
        self._request = Request(scope, receive)
        self._send = send
        self._status_code = status_code
        self._started = False
        self._closed = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self, headers: Mapping[str, str]) -> None:
        if self._started:
            return
        raw_headers = [
            (k.lower().encode("latin-1"), v.encode("latin-1"))
            for k, v in headers.items()
        ]
        await self._deliver(
            {
                "type": "http.response.start",
                "status": self._status_code,
                "headers": raw_headers,
            }
        )
        self._started = True

    async def write(self, chunk: bytes) -> None:
        await self._deliver(
            {"type": "http.response.body", "body": chunk, "more_body": True}
        )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._deliver(
                {"type": "http.response.body", "body": b"", "more_body": False}
            )
        except TransportClosed:
            logger.debug("connection already gone at close")

    async def is_disconnected(self) -> bool:
        return await self._request.is_disconnected()

    async def _deliver(self, message: Message) -> None:
        try:
            await self._send(message)
        except OSError as exc:
            raise TransportClosed(f"Client connection closed: {exc}") from exc
