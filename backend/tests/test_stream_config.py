from __future__ import annotations

import pytest
from streamer.core.config import Settings
from streamer.sse.errors import InvalidEventField
from streamer.sse.events import DEFAULT_EVENT_TYPES, StreamConfig


def test_defaults():
    config = StreamConfig()
    assert config.max_clients == 500
    assert config.connection_timeout == 300
    assert config.pacing_interval == 1.0
    assert config.allowed_event_types == set(DEFAULT_EVENT_TYPES)


def test_setters_chain():
    config = StreamConfig().set_timeout(60).set_max_clients(10).add_event_type("progress")
    assert config.connection_timeout == 60
    assert config.max_clients == 10
    assert "progress" in config.allowed_event_types


def test_add_event_type_accepts_several():
    config = StreamConfig().add_event_type(["progress", "done"])
    assert {"progress", "done"} <= config.allowed_event_types


def test_add_event_type_rejects_line_breaks():
    with pytest.raises(InvalidEventField):
        StreamConfig().add_event_type("bad\ntype")


@pytest.mark.parametrize("setter", ["set_timeout", "set_max_clients"])
def test_negative_values_rejected(setter):
    with pytest.raises(ValueError):
        getattr(StreamConfig(), setter)(-1)


def test_instances_do_not_share_allowed_types():
    first = StreamConfig().add_event_type("progress")
    assert "progress" not in StreamConfig().allowed_event_types
    copied = first.copy().add_event_type("done")
    assert "done" in copied.allowed_event_types
    assert "done" not in first.allowed_event_types


def test_from_settings():
    settings = Settings(
        sse_max_clients=3,
        sse_connection_timeout_seconds=42,
        sse_pacing_interval_seconds=0.5,
        sse_event_types="progress, done",
    )
    config = StreamConfig.from_settings(settings)
    assert config.max_clients == 3
    assert config.connection_timeout == 42
    assert config.pacing_interval == 0.5
    assert config.allowed_event_types == set(DEFAULT_EVENT_TYPES) | {"progress", "done"}
