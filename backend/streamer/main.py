from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from streamer.api.router import router as api_router
from streamer.core.config import get_settings
from streamer.core.errors import streamer_error_handler, unhandled_exception_handler
from streamer.core.limits import ClientLimiter
from streamer.core.logging import configure_logging
from streamer.core.middleware import RequestContextMiddleware
from streamer.sse.errors import StreamerError

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title="Streamer", version="0.1.0")

    app.add_middleware(RequestContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["x-request-id"],
    )

    app.include_router(api_router)

    app.add_exception_handler(StreamerError, streamer_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Per-process slot counter; see ClientLimiter.
    app.state.client_limiter = ClientLimiter(settings.sse_max_clients)
    logger.info(
        "app created",
        extra={"env": settings.env, "max_clients": settings.sse_max_clients},
    )

    return app


app = create_app()
