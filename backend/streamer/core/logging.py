from __future__ import annotations

import logging
import logging.config
import sys
from contextvars import ContextVar

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
stream_id_ctx: ContextVar[str | None] = ContextVar("stream_id", default=None)


class ContextFilter(logging.Filter):
    """Stamp records with the current request id and event stream id."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.request_id = request_id_ctx.get() or "-"
        record.stream_id = stream_id_ctx.get() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"context": {"()": ContextFilter}},
        "formatters": {
            "default": {
                "format": (
                    "%(asctime)s %(levelname)s [%(name)s] "
                    "[req=%(request_id)s] [stream=%(stream_id)s] %(message)s"
                )
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
                "filters": ["context"],
            }
        },
        "root": {"handlers": ["console"], "level": level.upper()},
    }
    logging.config.dictConfig(logging_config)
