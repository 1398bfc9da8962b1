from __future__ import annotations

import logging
import time
import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send
from streamer.core.logging import request_id_ctx

logger = logging.getLogger(__name__)


class RequestContextMiddleware:
    """
    Tags each HTTP request with an id (``x-request-id`` or a fresh UUID),
    echoes it on the response and logs how long the request took.

    Plain ASGI on purpose: ``receive`` reaches the endpoint untouched, so an
    event stream still sees ``http.disconnect`` from the server.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get("x-request-id") or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message).append("x-request-id", request_id)
            await send(message)

        start = time.perf_counter()
        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            # Covers the whole response, so event streams log their full lifetime.
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            logger.info(
                "request handled",
                extra={
                    "method": scope["method"],
                    "path": scope["path"],
                    "elapsed_ms": round(elapsed_ms, 2),
                },
            )
            request_id_ctx.reset(token)
