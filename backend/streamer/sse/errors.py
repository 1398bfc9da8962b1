from __future__ import annotations


class StreamerError(Exception):
    """Base class for event stream failures.

    ``code`` is the numeric code reported in the final ``error`` event when a
    failure ends a stream.
    """

    code: int = 0

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class SerializationError(StreamerError):
    """Event data cannot be converted to JSON text."""

    code = 1001


class InvalidEventField(StreamerError, ValueError):
    """An event id or event type would break SSE framing (CR or LF)."""

    code = 1002


class TransportClosed(StreamerError):
    """The sink could not deliver a frame; the client is gone."""

    code = 1003
