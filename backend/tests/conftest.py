from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure `backend/` is on sys.path so `import streamer.*` works when running tests from repo root.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from streamer.core.config import get_settings  # noqa: E402
from streamer.main import create_app  # noqa: E402


@pytest.fixture()
def app(monkeypatch):
    monkeypatch.setenv("ENV", "test")
    # Keep stream tests fast.
    monkeypatch.setenv("SSE_PACING_INTERVAL_SECONDS", "0.05")
    get_settings.cache_clear()
    yield create_app()
    get_settings.cache_clear()
