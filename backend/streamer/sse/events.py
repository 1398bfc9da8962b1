from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Iterable

from pydantic_core import PydanticSerializationError, to_jsonable_python
from streamer.sse.errors import InvalidEventField, SerializationError

if TYPE_CHECKING:
    from streamer.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TYPE = "message"
DEFAULT_EVENT_TYPES = frozenset({"message", "status", "update", "error"})

# Sent once per stream, before the first frame.
SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _check_single_line(name: str, value: str) -> str:
    if "\n" in value or "\r" in value:
        raise InvalidEventField(f"Event {name} must not contain line breaks: {value!r}")
    return value


@dataclass
class StreamConfig:
    """
    Per-session stream settings. Setters return the config so they chain:

        StreamConfig().set_timeout(60).add_event_type(["progress", "done"])

    ``max_clients`` is advisory; nothing in the stream core enforces it.
    """

    max_clients: int = 500
    connection_timeout: int = 300
    allowed_event_types: set[str] = field(
        default_factory=lambda: set(DEFAULT_EVENT_TYPES)
    )
    pacing_interval: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings) -> StreamConfig:
        config = cls(
            max_clients=settings.sse_max_clients,
            connection_timeout=settings.sse_connection_timeout_seconds,
            pacing_interval=settings.sse_pacing_interval_seconds,
        )
        return config.add_event_type(settings.sse_event_types_list)

    def set_timeout(self, timeout: int) -> StreamConfig:
        if timeout < 0:
            raise ValueError("timeout must be >= 0")
        self.connection_timeout = timeout
        return self

    def add_event_type(self, event_type: str | Iterable[str]) -> StreamConfig:
        types = [event_type] if isinstance(event_type, str) else list(event_type)
        for t in types:
            _check_single_line("type", t)
        self.allowed_event_types.update(types)
        return self

    def set_max_clients(self, max_clients: int) -> StreamConfig:
        if max_clients < 0:
            raise ValueError("max_clients must be >= 0")
        self.max_clients = max_clients
        return self

    def copy(self) -> StreamConfig:
        return replace(self, allowed_event_types=set(self.allowed_event_types))


@dataclass(frozen=True)
class Event:
    data: Any = None
    type: str = DEFAULT_EVENT_TYPE
    id: str | None = None


def resolve_event_type(event_type: Any, allowed: Iterable[str]) -> str:
    """
    Return ``event_type`` if allowed, otherwise ``"message"``.

    The downgrade is silent for the caller; it only shows up in the logs.
    """
    if isinstance(event_type, str) and event_type in allowed:
        return event_type
    logger.warning(
        "event type not allowed, sending as message",
        extra={"event_type": event_type},
    )
    return DEFAULT_EVENT_TYPE


def encode_data(data: Any) -> str:
    """Serialize ``data`` to single-line JSON text."""
    try:
        return json.dumps(
            data,
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
            default=to_jsonable_python,
        )
    except (TypeError, ValueError, RecursionError, PydanticSerializationError) as exc:
        raise SerializationError(f"Event data is not JSON serializable: {exc}") from exc


def sse_encode(event: Event, *, allowed_types: Iterable[str] = DEFAULT_EVENT_TYPES) -> str:
    """
    Encode a single event as SSE text: optional ``id:``, then ``event:``,
    then ``data:``, then a blank line.
    """
    event_type = resolve_event_type(event.type, allowed_types)
    payload = encode_data(event.data)

    lines = []
    if event.id is not None:
        lines.append(f"id: {_check_single_line('id', event.id)}")
    lines.append(f"event: {event_type}")
    lines.append(f"data: {payload}")
    return "\n".join(lines) + "\n\n"
